from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.realtime import events
from app.realtime.registry import ConnectionRegistry, get_registry
from app.schemas.licence import (
    CheckExistingRequest,
    CheckExistingResponse,
    ConflictOut,
    IssuedLicenceOut,
    LicenceRequestCreate,
    LicenceRequestOut,
    LicenceRequestUpdate,
    RenewRequest,
    StatusHistoryOut,
    build_licence_out,
)
from app.services.licences import conflicts, requests

router = APIRouter()


@router.get("", response_model=list[LicenceRequestOut])
def list_licences(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    status_filter: str | None = Query(default=None, alias="status"),
    state: str | None = Query(default=None),
    search: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[LicenceRequestOut]:
    licences = requests.list_licences(
        db, user, status=status_filter, state=state, search=search, limit=limit, offset=offset
    )
    return [build_licence_out(licence) for licence in licences]


@router.get("/drafts", response_model=list[LicenceRequestOut])
def list_drafts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[LicenceRequestOut]:
    licences = requests.list_licences(db, user, is_draft=True, limit=limit, offset=offset)
    return [build_licence_out(licence) for licence in licences]


@router.get("/issued", response_model=list[IssuedLicenceOut])
def list_issued(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    state: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
) -> list[IssuedLicenceOut]:
    rows = requests.list_issued(db, user, state=state, status=status_filter)
    return [IssuedLicenceOut.model_validate(row) for row in rows]


@router.post("/check-existing", response_model=CheckExistingResponse)
def check_existing(
    payload: CheckExistingRequest,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> CheckExistingResponse:
    found = conflicts.check_existing(db, payload.states, payload.plates)
    return CheckExistingResponse(
        has_conflicts=bool(found),
        conflicts=[ConflictOut(**conflict.to_dict()) for conflict in found],
    )


@router.post("", response_model=LicenceRequestOut, status_code=status.HTTP_201_CREATED)
def submit_licence(
    payload: LicenceRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    registry: ConnectionRegistry = Depends(get_registry),
) -> LicenceRequestOut:
    licence = requests.create_request(db, payload.model_dump(), user, draft=False)
    events.publish(registry, events.licence_created(licence), events.dashboard_update("licence_created"))
    return build_licence_out(licence)


@router.post("/drafts", response_model=LicenceRequestOut, status_code=status.HTTP_201_CREATED)
def create_draft(
    payload: LicenceRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> LicenceRequestOut:
    licence = requests.create_request(db, payload.model_dump(), user, draft=True)
    return build_licence_out(licence)


@router.patch("/drafts/{licence_id}", response_model=LicenceRequestOut)
def update_draft(
    licence_id: int,
    payload: LicenceRequestUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    registry: ConnectionRegistry = Depends(get_registry),
) -> LicenceRequestOut:
    licence = requests.update_draft(db, licence_id, payload.model_dump(exclude_unset=True), user)
    events.publish(registry, events.licence_updated(licence))
    return build_licence_out(licence)


@router.delete("/drafts/{licence_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_draft(
    licence_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> None:
    licence = requests.get_licence_for_user(db, licence_id, user)
    if not licence.is_draft:
        raise ValidationError("Somente rascunhos podem ser excluídos por aqui")
    requests.delete_licence(db, licence_id, user)


@router.post("/drafts/{licence_id}/submit", response_model=LicenceRequestOut)
def submit_draft(
    licence_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    registry: ConnectionRegistry = Depends(get_registry),
) -> LicenceRequestOut:
    licence = requests.submit_draft(db, licence_id, user)
    events.publish(registry, events.licence_created(licence), events.dashboard_update("licence_created"))
    return build_licence_out(licence)


@router.get("/{licence_id}", response_model=LicenceRequestOut)
def get_licence(
    licence_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> LicenceRequestOut:
    return build_licence_out(requests.get_licence_for_user(db, licence_id, user))


@router.post("/{licence_id}/renew", response_model=LicenceRequestOut, status_code=status.HTTP_201_CREATED)
def renew_licence(
    licence_id: int,
    payload: RenewRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> LicenceRequestOut:
    return build_licence_out(requests.renew_licence(db, licence_id, payload.state, user))


@router.get("/{licence_id}/status-history", response_model=list[StatusHistoryOut])
def status_history(
    licence_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    state: str | None = Query(default=None),
) -> list[StatusHistoryOut]:
    rows = requests.status_history(db, licence_id, user, state=state)
    return [StatusHistoryOut.model_validate(row) for row in rows]
