from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.licences import state_tags
from app.services.licences.workflow import PENDING_REGISTRATION, STATUS_LABELS

CargoType = Literal[
    "dry_cargo",
    "liquid_cargo",
    "live_cargo",
    "sugar_cane",
    "indivisible_cargo",
    "agricultural_machinery",
    "oversized",
]


class LicenceRequestBase(BaseModel):
    transporter_id: Optional[int] = None
    main_vehicle_plate: Optional[str] = None
    tractor_unit_id: Optional[int] = None
    first_trailer_id: Optional[int] = None
    second_trailer_id: Optional[int] = None
    dolly_id: Optional[int] = None
    flatbed_id: Optional[int] = None
    additional_plates: List[str] = Field(default_factory=list)
    # centímetros
    length: Optional[int] = Field(default=None, gt=0)
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    cargo_type: Optional[CargoType] = None
    comments: Optional[str] = None


class LicenceRequestCreate(LicenceRequestBase):
    type: str = Field(min_length=1, max_length=32)
    length: int = Field(gt=0)
    states: List[str] = Field(min_length=1)


class LicenceRequestUpdate(LicenceRequestBase):
    type: Optional[str] = Field(default=None, min_length=1, max_length=32)
    additional_plates: Optional[List[str]] = None
    states: Optional[List[str]] = None


class RenewRequest(BaseModel):
    state: str


class StateDetail(BaseModel):
    state: str
    status: str
    status_label: str
    valid_until: Optional[date] = None
    issued_at: Optional[date] = None
    aet_number: Optional[str] = None
    file_url: Optional[str] = None
    selected_cnpj: Optional[str] = None


class LicenceRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_number: str
    user_id: str
    transporter_id: Optional[int] = None
    type: str
    main_vehicle_plate: str
    tractor_unit_id: Optional[int] = None
    first_trailer_id: Optional[int] = None
    second_trailer_id: Optional[int] = None
    dolly_id: Optional[int] = None
    flatbed_id: Optional[int] = None
    additional_plates: List[str] = Field(default_factory=list)
    length: int
    width: int
    height: int
    cargo_type: str
    states: List[str]
    status: str
    state_statuses: List[str] = Field(default_factory=list)
    state_files: List[str] = Field(default_factory=list)
    state_aet_numbers: List[str] = Field(default_factory=list)
    state_cnpjs: List[str] = Field(default_factory=list)
    is_draft: bool
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    state_details: List[StateDetail] = Field(default_factory=list)


def build_state_details(licence) -> list[StateDetail]:
    records = state_tags.decode(licence.state_statuses)
    files = state_tags.tag_values(licence.state_files)
    aet_numbers = state_tags.tag_values(licence.state_aet_numbers)
    cnpjs = state_tags.tag_values(licence.state_cnpjs)
    details = []
    for state in licence.states or []:
        record = records.get(state)
        status = record.status if record else PENDING_REGISTRATION
        details.append(
            StateDetail(
                state=state,
                status=status,
                status_label=STATUS_LABELS.get(status, status),
                valid_until=record.valid_until if record else None,
                issued_at=record.issued_at if record else None,
                aet_number=aet_numbers.get(state),
                file_url=files.get(state),
                selected_cnpj=cnpjs.get(state),
            )
        )
    return details


def build_licence_out(licence) -> LicenceRequestOut:
    out = LicenceRequestOut.model_validate(licence)
    return out.model_copy(update={"state_details": build_state_details(licence)})


class CheckExistingRequest(BaseModel):
    states: List[str] = Field(min_length=1)
    plates: List[str] = Field(min_length=1)


class ConflictOut(BaseModel):
    state: str
    licence_id: int
    request_number: Optional[str] = None
    permit_number: str
    valid_until: date
    days_remaining: int
    conflicting_plates: List[str]
    blocking: bool = True


class CheckExistingResponse(BaseModel):
    has_conflicts: bool
    conflicts: List[ConflictOut]


class IssuedLicenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    state: str
    permit_number: str
    issued_at: date
    valid_until: date
    status: str
    tractor_plate: Optional[str] = None
    first_trailer_plate: Optional[str] = None
    second_trailer_plate: Optional[str] = None
    dolly_plate: Optional[str] = None
    flatbed_plate: Optional[str] = None
    trailer_plate: Optional[str] = None
    selected_cnpj: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class StatusHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    state: str
    user_id: str
    old_status: str
    new_status: str
    comments: Optional[str] = None
    created_at: datetime


class ReconcileOut(BaseModel):
    licences: int
    synced: int
    failed: int
    expired: int
