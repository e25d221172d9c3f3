from datetime import date

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.security import TRANSITION_ROLES, require_roles, require_staff
from app.db.session import get_db
from app.models.user import User
from app.realtime import events
from app.realtime.registry import ConnectionRegistry, get_registry
from app.schemas.licence import LicenceRequestOut, ReconcileOut, build_licence_out
from app.services.licences import ledger, requests
from app.services.licences.transitions import transition
from app.services.storage import DocumentUpload, LocalBlobStore, get_blob_store

router = APIRouter()


@router.get("", response_model=list[LicenceRequestOut])
def list_all_licences(
    db: Session = Depends(get_db),
    user: User = Depends(require_staff()),
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


@router.post("/reconcile", response_model=ReconcileOut)
def reconcile_ledger(
    db: Session = Depends(get_db),
    _user: User = Depends(require_roles("ADMIN")),
) -> ReconcileOut:
    return ReconcileOut(**ledger.reconcile_approved(db))


@router.get("/{licence_id}", response_model=LicenceRequestOut)
def get_licence(
    licence_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff()),
) -> LicenceRequestOut:
    return build_licence_out(requests.get_licence(db, licence_id))


@router.patch("/{licence_id}/state-status", response_model=LicenceRequestOut)
def update_state_status(
    licence_id: int,
    state: str = Form(...),
    status_value: str = Form(..., alias="status"),
    comments: str | None = Form(default=None),
    valid_until: date | None = Form(default=None),
    issued_at: date | None = Form(default=None),
    aet_number: str | None = Form(default=None),
    selected_cnpj: str | None = Form(default=None),
    state_file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*TRANSITION_ROLES)),
    blob_store: LocalBlobStore = Depends(get_blob_store),
    registry: ConnectionRegistry = Depends(get_registry),
) -> LicenceRequestOut:
    document = None
    if state_file is not None and state_file.filename:
        document = DocumentUpload(
            content=state_file.file.read(),
            filename=state_file.filename,
            content_type=state_file.content_type,
        )

    licence = transition(
        db,
        licence_id,
        state,
        status_value,
        actor_id=user.id,
        comments=comments,
        valid_until=valid_until,
        issued_at=issued_at,
        aet_number=aet_number,
        document=document,
        selected_cnpj=selected_cnpj,
        blob_store=blob_store,
        registry=registry,
    )
    return build_licence_out(licence)


@router.delete("/{licence_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_licence(
    licence_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("ADMIN")),
    registry: ConnectionRegistry = Depends(get_registry),
) -> None:
    request_number = requests.delete_licence(db, licence_id, user)
    events.publish(registry, events.licence_deleted(licence_id, request_number), events.dashboard_update("licence_deleted"))
