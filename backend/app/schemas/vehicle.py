from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

VehicleType = Literal["tractor_unit", "semi_trailer", "dolly", "flatbed", "truck"]


class VehicleCreate(BaseModel):
    plate: str = Field(min_length=7, max_length=10)
    type: VehicleType
    transporter_id: Optional[int] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1950, le=2100)
    renavam: Optional[str] = None
    axle_count: Optional[int] = Field(default=None, ge=1, le=12)
    tare: Optional[int] = Field(default=None, ge=0)
    body_type: Optional[str] = None
    ownership_type: Literal["proprio", "terceiro"] = "proprio"


class VehicleUpdate(BaseModel):
    plate: Optional[str] = Field(default=None, min_length=7, max_length=10)
    type: Optional[VehicleType] = None
    transporter_id: Optional[int] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1950, le=2100)
    renavam: Optional[str] = None
    axle_count: Optional[int] = Field(default=None, ge=1, le=12)
    tare: Optional[int] = Field(default=None, ge=0)
    body_type: Optional[str] = None
    ownership_type: Optional[Literal["proprio", "terceiro"]] = None
    status: Optional[Literal["active", "inactive", "maintenance"]] = None


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    transporter_id: Optional[int] = None
    plate: str
    type: str
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    renavam: Optional[str] = None
    axle_count: Optional[int] = None
    tare: Optional[int] = None
    body_type: Optional[str] = None
    ownership_type: str
    status: str
    crlv_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
