"""
Tabela de licenças emitidas (issued_licences).

Cada UF liberada de um pedido gera uma linha com o número da AET, vigência e
um retrato das placas da composição no momento da liberação. A validação de
conflitos consulta somente esta tabela.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from app.models.issued_licence import LEDGER_ACTIVE, LEDGER_CANCELED, LEDGER_EXPIRED, IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.vehicle import Vehicle
from app.services.licences import state_tags
from app.services.licences.utils import normalize_cnpj, normalize_plate
from app.services.licences.workflow import APPROVED

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "tractor_plate",
    "first_trailer_plate",
    "second_trailer_plate",
    "dolly_plate",
    "flatbed_plate",
    "trailer_plate",
)

ROLE_TO_FIELD = {
    "tractor": "tractor_plate",
    "first_trailer": "first_trailer_plate",
    "second_trailer": "second_trailer_plate",
    "dolly": "dolly_plate",
    "flatbed": "flatbed_plate",
}

# campo de cada posição da lista de placas adicionais de pedidos antigos
LEGACY_SLOT_ORDER = (
    "first_trailer_plate",
    "second_trailer_plate",
    "dolly_plate",
    "flatbed_plate",
    "trailer_plate",
)


def _vehicle_plate(db: Session, vehicle_id: int | None) -> str | None:
    if not vehicle_id:
        return None
    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        logger.warning("ledger_snapshot vehicle_not_found vehicle_id=%s", vehicle_id)
        return None
    return normalize_plate(vehicle.plate) or None


def assign_legacy_additional_plates(snapshot: dict[str, str | None], additional_plates: Iterable[str] | None) -> dict[str, str | None]:
    """
    Pedidos antigos guardavam a composição só como lista de placas adicionais.
    A placa da posição i vai para LEGACY_SLOT_ORDER[i] se esse campo ainda
    estiver vazio; caso contrário, ou além da quinta posição, é descartada.
    """
    result = dict(snapshot)
    for slot, raw in zip(LEGACY_SLOT_ORDER, additional_plates or []):
        plate = normalize_plate(raw)
        if plate and not result.get(slot):
            result[slot] = plate
    return result


def resolve_plate_snapshot(db: Session, licence: LicenceRequest) -> dict[str, str | None]:
    snapshot: dict[str, str | None] = {field: None for field in SNAPSHOT_FIELDS}
    for role, vehicle_id in licence.vehicle_role_ids().items():
        snapshot[ROLE_TO_FIELD[role]] = _vehicle_plate(db, vehicle_id)
    if not snapshot["tractor_plate"]:
        snapshot["tractor_plate"] = normalize_plate(licence.main_vehicle_plate) or None
    return assign_legacy_additional_plates(snapshot, licence.additional_plates)


def sync_approved_state(
    db: Session,
    licence: LicenceRequest,
    state: str,
    permit_number: str | None,
    valid_until: date,
    issued_at: date,
) -> IssuedLicence:
    """
    Insere ou atualiza a linha (pedido, UF) como ativa. Pode ser repetida sem
    efeito colateral; não faz commit.
    """
    permit_number = (permit_number or "").strip() or f"{state}-{licence.id}"
    selected_cnpj = state_tags.tag_value(licence.state_cnpjs, state)
    payload = {
        "permit_number": permit_number,
        "issued_at": issued_at,
        "valid_until": valid_until,
        "status": LEDGER_ACTIVE,
        "selected_cnpj": normalize_cnpj(selected_cnpj) or None,
        **resolve_plate_snapshot(db, licence),
    }

    existing = (
        db.query(IssuedLicence)
        .filter(IssuedLicence.request_id == licence.id, IssuedLicence.state == state)
        .first()
    )
    if existing:
        for key, value in payload.items():
            setattr(existing, key, value)
        entry = existing
    else:
        entry = IssuedLicence(request_id=licence.id, state=state, **payload)
        db.add(entry)
    db.flush()

    logger.info(
        "ledger_sync licence_id=%s state=%s permit_number=%s valid_until=%s",
        licence.id,
        state,
        permit_number,
        valid_until,
    )
    return entry


def cancel_state(db: Session, licence_id: int, state: str) -> IssuedLicence | None:
    entry = (
        db.query(IssuedLicence)
        .filter(IssuedLicence.request_id == licence_id, IssuedLicence.state == state)
        .first()
    )
    if entry is None:
        return None
    entry.status = LEDGER_CANCELED
    db.flush()
    logger.info("ledger_cancel licence_id=%s state=%s permit_number=%s", licence_id, state, entry.permit_number)
    return entry


def expire_overdue(db: Session, today: date | None = None) -> int:
    today = today or date.today()
    expired = (
        db.query(IssuedLicence)
        .filter(IssuedLicence.status == LEDGER_ACTIVE, IssuedLicence.valid_until < today)
        .update({IssuedLicence.status: LEDGER_EXPIRED}, synchronize_session=False)
    )
    if expired:
        logger.info("ledger_expire count=%s today=%s", expired, today)
    return expired


def reconcile_approved(db: Session, today: date | None = None) -> dict[str, int]:
    """
    Reprocessa todas as UFs liberadas dos pedidos enviados. Cada UF é gravada
    em commit próprio para que uma falha não impeça as demais.
    """
    today = today or date.today()
    candidates = (
        db.query(LicenceRequest.id)
        .filter(
            LicenceRequest.is_draft.is_(False),
            cast(LicenceRequest.state_statuses, String).contains(f":{APPROVED}", autoescape=True),
        )
        .order_by(LicenceRequest.id)
        .all()
    )

    stats = {"licences": 0, "synced": 0, "failed": 0, "expired": 0}
    for (licence_id,) in candidates:
        licence = db.get(LicenceRequest, licence_id)
        if licence is None:
            continue
        stats["licences"] += 1
        approved = [
            record
            for record in state_tags.decode(licence.state_statuses).values()
            if record.status == APPROVED and record.valid_until and record.state in (licence.states or [])
        ]
        for record in approved:
            try:
                sync_approved_state(
                    db,
                    licence,
                    record.state,
                    state_tags.tag_value(licence.state_aet_numbers, record.state),
                    record.valid_until,
                    record.issued_at or today,
                )
                db.commit()
                stats["synced"] += 1
            except Exception:
                db.rollback()
                stats["failed"] += 1
                logger.exception("ledger_reconcile_failed licence_id=%s state=%s", licence_id, record.state)

    stats["expired"] = expire_overdue(db, today)
    db.commit()
    logger.info("ledger_reconcile stats=%s", stats)
    return stats
