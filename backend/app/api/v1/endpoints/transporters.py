from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import get_current_user, require_roles
from app.db.session import get_db
from app.models.transporter import Transporter
from app.models.user import User
from app.schemas.transporter import TransporterCreate, TransporterOut, TransporterUpdate
from app.services.licences.utils import normalize_cnpj, normalize_state

router = APIRouter()

WRITE_ROLES = ("ADMIN", "MANAGER", "SUPERVISOR", "OPERATIONAL")


def _normalize_document(value: str, person_type: str) -> str:
    digits = normalize_cnpj(value)
    expected = 11 if person_type == "pf" else 14
    if len(digits) != expected:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CPF/CNPJ invalido",
        )
    return digits


def _prepare(data: dict, person_type: str) -> dict:
    if data.get("document_number") is not None:
        data["document_number"] = _normalize_document(data["document_number"], person_type)
    if data.get("state"):
        data["state"] = normalize_state(data["state"])
    if data.get("subsidiaries") is not None:
        data["subsidiaries"] = [
            {**subsidiary, "document_number": _normalize_document(subsidiary["document_number"], "pj")}
            for subsidiary in data["subsidiaries"]
        ]
    return data


def _get_transporter(db: Session, transporter_id: int, user: User) -> Transporter:
    transporter = db.get(Transporter, transporter_id)
    if not transporter or (not user.is_staff and transporter.user_id != user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transporter not found",
        )
    return transporter


@router.post("", response_model=TransporterOut)
def create_transporter(
    payload: TransporterCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*WRITE_ROLES)),
) -> TransporterOut:
    data = _prepare(payload.model_dump(), payload.person_type)
    transporter = Transporter(**data)
    db.add(transporter)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Transporter already exists",
        )
    db.refresh(transporter)
    return TransporterOut.model_validate(transporter)


@router.get("", response_model=list[TransporterOut])
def list_transporters(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    search: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[TransporterOut]:
    query = db.query(Transporter)
    if not user.is_staff:
        query = query.filter(Transporter.user_id == user.id)
    if search:
        digits = normalize_cnpj(search)
        conditions = Transporter.name.ilike(f"%{search}%") | Transporter.trade_name.ilike(f"%{search}%")
        if digits:
            conditions = conditions | Transporter.document_number.contains(digits)
        query = query.filter(conditions)
    transporters = query.order_by(Transporter.name).offset(offset).limit(limit).all()
    return [TransporterOut.model_validate(transporter) for transporter in transporters]


@router.get("/{transporter_id}", response_model=TransporterOut)
def get_transporter(
    transporter_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> TransporterOut:
    return TransporterOut.model_validate(_get_transporter(db, transporter_id, user))


@router.patch("/{transporter_id}", response_model=TransporterOut)
def update_transporter(
    transporter_id: int,
    payload: TransporterUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*WRITE_ROLES)),
) -> TransporterOut:
    transporter = _get_transporter(db, transporter_id, user)
    data = payload.model_dump(exclude_unset=True)
    person_type = data.get("person_type") or transporter.person_type
    for key, value in _prepare(data, person_type).items():
        setattr(transporter, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Transporter already exists",
        )
    db.refresh(transporter)
    return TransporterOut.model_validate(transporter)
