from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Subsidiary(BaseModel):
    name: Optional[str] = None
    document_number: str
    city: Optional[str] = None
    state: Optional[str] = None


class TransporterCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    trade_name: Optional[str] = None
    person_type: Literal["pf", "pj"] = "pj"
    document_number: str
    city: Optional[str] = None
    state: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subsidiaries: List[Subsidiary] = Field(default_factory=list)
    user_id: Optional[str] = None


class TransporterUpdate(BaseModel):
    name: Optional[str] = None
    trade_name: Optional[str] = None
    person_type: Optional[Literal["pf", "pj"]] = None
    document_number: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subsidiaries: Optional[List[Subsidiary]] = None
    user_id: Optional[str] = None


class TransporterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    name: str
    trade_name: Optional[str] = None
    person_type: str
    document_number: str
    city: Optional[str] = None
    state: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subsidiaries: Optional[List[Subsidiary]] = None
    created_at: datetime
    updated_at: datetime
