from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import BILLING_ROLES, get_current_user, require_roles
from app.db.session import get_db
from app.models.user import User
from app.schemas.boleto import BoletoCreate, BoletoOut, BoletoUpdate
from app.services import boletos

router = APIRouter()


@router.get("", response_model=list[BoletoOut])
def list_boletos(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    status_filter: str | None = Query(default=None, alias="status"),
    transporter_id: int | None = Query(default=None),
) -> list[BoletoOut]:
    rows = boletos.list_boletos(db, user, status=status_filter, transporter_id=transporter_id)
    return [BoletoOut.model_validate(row) for row in rows]


@router.post("", response_model=BoletoOut, status_code=status.HTTP_201_CREATED)
def create_boleto(
    payload: BoletoCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*BILLING_ROLES)),
) -> BoletoOut:
    return BoletoOut.model_validate(boletos.create_boleto(db, payload.model_dump(), user))


@router.get("/{boleto_id}", response_model=BoletoOut)
def get_boleto(
    boleto_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> BoletoOut:
    return BoletoOut.model_validate(boletos.get_boleto(db, boleto_id, user))


@router.patch("/{boleto_id}", response_model=BoletoOut)
def update_boleto(
    boleto_id: int,
    payload: BoletoUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*BILLING_ROLES)),
) -> BoletoOut:
    data = payload.model_dump(exclude_unset=True)
    return BoletoOut.model_validate(boletos.update_boleto(db, boleto_id, data, user))


@router.delete("/{boleto_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_boleto(
    boleto_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*BILLING_ROLES)),
) -> None:
    boletos.delete_boleto(db, boleto_id, user)
