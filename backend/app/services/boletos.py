from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.audit import AuditEvent, record_audit_event
from app.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.models.boleto import Boleto
from app.models.licence_request import LicenceRequest
from app.models.transporter import Transporter
from app.models.user import User
from app.services.licences.utils import normalize_digits

logger = logging.getLogger(__name__)

BOLETO_PENDING = "aguardando_pagamento"
BOLETO_PAID = "pago"
BOLETO_OVERDUE = "vencido"


def _tax_id(value: str | None) -> str:
    digits = normalize_digits(value)
    if len(digits) not in (11, 14):
        raise ValidationError("CPF/CNPJ deve ter 11 ou 14 dígitos")
    return digits


def create_boleto(db: Session, data: dict[str, Any], user: User) -> Boleto:
    transporter = db.get(Transporter, data["transporter_id"])
    if transporter is None:
        raise NotFoundError("Transportador não encontrado")
    if data.get("request_id") is not None and db.get(LicenceRequest, data["request_id"]) is None:
        raise NotFoundError("Licença não encontrada")

    data = dict(data)
    data["cpf_cnpj"] = _tax_id(data.get("cpf_cnpj") or transporter.document_number)
    boleto = Boleto(transporter_name=transporter.name, **data)
    db.add(boleto)
    db.commit()
    db.refresh(boleto)
    record_audit_event(
        AuditEvent(
            action="boleto_created",
            entity="boleto",
            entity_id=str(boleto.id),
            actor_id=user.id,
            detail=boleto.boleto_number,
        )
    )
    return boleto


def get_boleto(db: Session, boleto_id: int, user: User) -> Boleto:
    boleto = db.get(Boleto, boleto_id)
    if boleto is None:
        raise NotFoundError("Boleto não encontrado")
    if not user.is_staff:
        transporter = db.get(Transporter, boleto.transporter_id)
        if transporter is None or transporter.user_id != user.id:
            raise PermissionDeniedError("Boleto pertence a outro transportador")
    return boleto


def update_boleto(db: Session, boleto_id: int, data: dict[str, Any], user: User) -> Boleto:
    boleto = get_boleto(db, boleto_id, user)
    for key, value in data.items():
        setattr(boleto, key, value)
    if boleto.due_date < boleto.issue_date:
        db.rollback()
        raise ValidationError("Vencimento deve ser posterior à emissão")
    db.commit()
    db.refresh(boleto)
    logger.info("boleto_updated boleto_id=%s user_id=%s status=%s", boleto.id, user.id, boleto.status)
    return boleto


def delete_boleto(db: Session, boleto_id: int, user: User) -> None:
    boleto = get_boleto(db, boleto_id, user)
    db.delete(boleto)
    db.commit()
    record_audit_event(
        AuditEvent(action="boleto_deleted", entity="boleto", entity_id=str(boleto_id), actor_id=user.id)
    )


def list_boletos(
    db: Session,
    user: User,
    *,
    status: str | None = None,
    transporter_id: int | None = None,
    today: date | None = None,
) -> list[Boleto]:
    mark_overdue(db, today)
    query = db.query(Boleto)
    if not user.is_staff:
        linked = select(Transporter.id).where(Transporter.user_id == user.id)
        query = query.filter(Boleto.transporter_id.in_(linked))
    if transporter_id is not None:
        query = query.filter(Boleto.transporter_id == transporter_id)
    if status:
        query = query.filter(Boleto.status == status)
    return query.order_by(Boleto.due_date.desc(), Boleto.id.desc()).all()


def mark_overdue(db: Session, today: date | None = None) -> int:
    today = today or date.today()
    updated = (
        db.query(Boleto)
        .filter(Boleto.status == BOLETO_PENDING, Boleto.due_date < today)
        .update({Boleto.status: BOLETO_OVERDUE}, synchronize_session=False)
    )
    if updated:
        db.commit()
        logger.info("boletos_overdue count=%s today=%s", updated, today)
    return updated
