"""
Pedidos de licença: rascunhos, envio, renovação, consultas e exclusão.

As funções fazem commit e recebem o usuário autenticado para decidir o escopo:
equipe interna enxerga tudo, usuário de transportador só os próprios pedidos
e os dos transportadores vinculados a ele.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import String, cast, or_, select
from sqlalchemy.orm import Session

from app.core.audit import AuditEvent, record_audit_event
from app.core.errors import (
    ConflictBlockedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.issued_licence import IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.status_history import StatusHistory
from app.models.transporter import Transporter
from app.models.user import User
from app.models.vehicle import Vehicle
from app.services.licences import conflicts, state_tags
from app.services.licences.utils import (
    BRAZILIAN_STATES,
    generate_request_number,
    normalize_plate,
    normalize_plates,
    normalize_state,
)
from app.services.licences.workflow import PENDING_REGISTRATION

logger = logging.getLogger(__name__)

VEHICLE_ROLE_FIELDS = (
    "tractor_unit_id",
    "first_trailer_id",
    "second_trailer_id",
    "dolly_id",
    "flatbed_id",
)

EDITABLE_FIELDS = (
    "transporter_id",
    "type",
    "main_vehicle_plate",
    *VEHICLE_ROLE_FIELDS,
    "additional_plates",
    "length",
    "width",
    "height",
    "cargo_type",
    "states",
    "comments",
)

FLATBED_TYPE = "flatbed"


def apply_dimension_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Largura, altura e tipo de carga padrão quando o formulário não envia."""
    is_flatbed = data.get("type") == FLATBED_TYPE
    if not data.get("width"):
        data["width"] = 320 if is_flatbed else 260
    if not data.get("height"):
        data["height"] = 495 if is_flatbed else 440
    if not data.get("cargo_type"):
        data["cargo_type"] = "indivisible_cargo" if is_flatbed else "dry_cargo"
    return data


def _normalize_states(states: Iterable[str] | None) -> list[str]:
    result: list[str] = []
    for raw in states or []:
        state = normalize_state(raw)
        if state not in BRAZILIAN_STATES:
            raise ValidationError(f"Estado inválido: {raw}")
        if state not in result:
            result.append(state)
    if not result:
        raise ValidationError("Informe ao menos um estado")
    return result


def _owner_scope(query, user: User):
    if user.is_staff:
        return query
    linked_transporters = select(Transporter.id).where(Transporter.user_id == user.id)
    return query.filter(
        or_(
            LicenceRequest.user_id == user.id,
            LicenceRequest.transporter_id.in_(linked_transporters),
        )
    )


def can_access(licence: LicenceRequest, user: User, db: Session) -> bool:
    if user.is_staff or licence.user_id == user.id:
        return True
    if licence.transporter_id is None:
        return False
    transporter = db.get(Transporter, licence.transporter_id)
    return transporter is not None and transporter.user_id == user.id


def _check_transporter(db: Session, transporter_id: int | None, user: User) -> Transporter | None:
    if transporter_id is None:
        return None
    transporter = db.get(Transporter, transporter_id)
    if transporter is None:
        raise NotFoundError("Transportador não encontrado")
    if not user.is_staff and transporter.user_id != user.id:
        raise PermissionDeniedError("Transportador não vinculado ao usuário")
    return transporter


def _check_vehicles(db: Session, data: dict[str, Any], user: User) -> dict[str, Vehicle]:
    vehicles: dict[str, Vehicle] = {}
    for field in VEHICLE_ROLE_FIELDS:
        vehicle_id = data.get(field)
        if not vehicle_id:
            continue
        vehicle = db.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Veículo {vehicle_id} não encontrado")
        if not user.is_staff and vehicle.user_id not in (None, user.id):
            raise PermissionDeniedError(f"Veículo {vehicle.plate} pertence a outro usuário")
        vehicles[field] = vehicle
    return vehicles


def _prepare(db: Session, data: dict[str, Any], user: User) -> dict[str, Any]:
    data = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    data["states"] = _normalize_states(data.get("states"))
    data["additional_plates"] = normalize_plates(data.get("additional_plates"))
    _check_transporter(db, data.get("transporter_id"), user)
    vehicles = _check_vehicles(db, data, user)

    main_plate = normalize_plate(data.get("main_vehicle_plate"))
    if not main_plate and "tractor_unit_id" in vehicles:
        main_plate = normalize_plate(vehicles["tractor_unit_id"].plate)
    if not main_plate:
        raise ValidationError("Informe a placa principal ou o cavalo mecânico")
    data["main_vehicle_plate"] = main_plate
    return apply_dimension_defaults(data)


def composition_plates(db: Session, licence: LicenceRequest) -> list[str]:
    plates = [licence.main_vehicle_plate]
    for vehicle_id in licence.vehicle_role_ids().values():
        if vehicle_id:
            vehicle = db.get(Vehicle, vehicle_id)
            if vehicle is not None:
                plates.append(vehicle.plate)
    plates.extend(licence.additional_plates or [])
    return normalize_plates(plates)


def _ensure_no_conflicts(db: Session, licence: LicenceRequest) -> None:
    found = conflicts.check_existing(db, licence.states, composition_plates(db, licence))
    if found:
        states = ", ".join(conflict.state for conflict in found)
        raise ConflictBlockedError(
            f"Já existe licença vigente para os estados: {states}",
            payload={"conflicts": [conflict.to_dict() for conflict in found]},
        )


def _mark_submitted(licence: LicenceRequest) -> None:
    licence.is_draft = False
    licence.request_number = generate_request_number(draft=False)
    licence.status = PENDING_REGISTRATION
    licence.state_statuses = [state_tags.encode(state, PENDING_REGISTRATION) for state in licence.states]


def get_licence(db: Session, licence_id: int) -> LicenceRequest:
    licence = db.get(LicenceRequest, licence_id)
    if licence is None:
        raise NotFoundError(f"Licença {licence_id} não encontrada")
    return licence


def get_licence_for_user(db: Session, licence_id: int, user: User) -> LicenceRequest:
    licence = get_licence(db, licence_id)
    if not can_access(licence, user, db):
        raise PermissionDeniedError("Licença pertence a outro usuário")
    return licence


def create_request(db: Session, data: dict[str, Any], user: User, *, draft: bool) -> LicenceRequest:
    prepared = _prepare(db, data, user)
    licence = LicenceRequest(
        user_id=user.id,
        request_number=generate_request_number(draft=True),
        is_draft=True,
        status=PENDING_REGISTRATION,
        state_statuses=[],
        state_files=[],
        state_aet_numbers=[],
        state_cnpjs=[],
        **prepared,
    )
    if not draft:
        _ensure_no_conflicts(db, licence)
        _mark_submitted(licence)

    db.add(licence)
    db.commit()
    db.refresh(licence)

    record_audit_event(
        AuditEvent(
            action="licence_submitted" if not draft else "licence_draft_created",
            entity="licence_request",
            entity_id=str(licence.id),
            actor_id=user.id,
            detail=",".join(licence.states),
        )
    )
    return licence


def update_draft(db: Session, licence_id: int, data: dict[str, Any], user: User) -> LicenceRequest:
    licence = get_licence_for_user(db, licence_id, user)
    if not licence.is_draft:
        raise ValidationError("Somente rascunhos podem ser editados")

    current = {field: getattr(licence, field) for field in EDITABLE_FIELDS}
    current.update({key: value for key, value in data.items() if key in EDITABLE_FIELDS})
    for key, value in _prepare(db, current, user).items():
        setattr(licence, key, value)

    db.commit()
    db.refresh(licence)
    logger.info("licence_draft_updated licence_id=%s user_id=%s", licence.id, user.id)
    return licence


def submit_draft(db: Session, licence_id: int, user: User) -> LicenceRequest:
    licence = get_licence_for_user(db, licence_id, user)
    if not licence.is_draft:
        raise ValidationError("Licença já foi enviada")
    _ensure_no_conflicts(db, licence)
    _mark_submitted(licence)
    db.commit()
    db.refresh(licence)

    record_audit_event(
        AuditEvent(
            action="licence_submitted",
            entity="licence_request",
            entity_id=str(licence.id),
            actor_id=user.id,
            detail=licence.request_number,
        )
    )
    return licence


def renew_licence(db: Session, licence_id: int, state: str, user: User) -> LicenceRequest:
    original = get_licence_for_user(db, licence_id, user)
    state = normalize_state(state)
    if state not in (original.states or []):
        raise ValidationError(f"Estado {state} não faz parte da licença {original.request_number}")

    draft = LicenceRequest(
        user_id=original.user_id,
        transporter_id=original.transporter_id,
        request_number=generate_request_number(draft=True),
        type=original.type,
        main_vehicle_plate=original.main_vehicle_plate,
        tractor_unit_id=original.tractor_unit_id,
        first_trailer_id=original.first_trailer_id,
        second_trailer_id=original.second_trailer_id,
        dolly_id=original.dolly_id,
        flatbed_id=original.flatbed_id,
        additional_plates=list(original.additional_plates or []),
        length=original.length,
        width=original.width,
        height=original.height,
        cargo_type=original.cargo_type,
        states=[state],
        status=PENDING_REGISTRATION,
        state_statuses=[],
        state_files=[],
        state_aet_numbers=[],
        state_cnpjs=[],
        is_draft=True,
        comments=f"Renovação da licença {original.request_number} para o estado {state}",
    )
    db.add(draft)
    db.commit()
    db.refresh(draft)

    record_audit_event(
        AuditEvent(
            action="licence_renewal_draft",
            entity="licence_request",
            entity_id=str(draft.id),
            actor_id=user.id,
            detail=f"{original.request_number}:{state}",
        )
    )
    return draft


def delete_licence(db: Session, licence_id: int, user: User) -> str:
    """Remove o pedido junto com as linhas emitidas e o histórico. Devolve o número do pedido."""
    licence = get_licence_for_user(db, licence_id, user)
    if not licence.is_draft and "ADMIN" not in user.role_names:
        raise PermissionDeniedError("Somente administradores podem excluir licenças enviadas")

    request_number = licence.request_number
    db.delete(licence)
    db.commit()

    record_audit_event(
        AuditEvent(
            action="licence_deleted",
            entity="licence_request",
            entity_id=str(licence_id),
            actor_id=user.id,
            detail=request_number,
        )
    )
    return request_number


def list_licences(
    db: Session,
    user: User,
    *,
    is_draft: bool = False,
    status: str | None = None,
    state: str | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[LicenceRequest]:
    query = _owner_scope(db.query(LicenceRequest), user).filter(LicenceRequest.is_draft.is_(is_draft))
    if status:
        query = query.filter(
            or_(
                LicenceRequest.status == status,
                cast(LicenceRequest.state_statuses, String).contains(f":{status}", autoescape=True),
            )
        )
    if state:
        query = query.filter(
            cast(LicenceRequest.states, String).contains(f'"{normalize_state(state)}"', autoescape=True)
        )
    if search:
        term = f"%{search.strip()}%"
        plate = normalize_plate(search)
        query = query.filter(
            or_(
                LicenceRequest.request_number.ilike(term),
                LicenceRequest.main_vehicle_plate.ilike(f"%{plate or search.strip()}%"),
            )
        )
    return query.order_by(LicenceRequest.created_at.desc(), LicenceRequest.id.desc()).offset(offset).limit(limit).all()


def list_issued(db: Session, user: User, *, state: str | None = None, status: str | None = None) -> list[IssuedLicence]:
    query = db.query(IssuedLicence).join(LicenceRequest, IssuedLicence.request_id == LicenceRequest.id)
    query = _owner_scope(query, user)
    if state:
        query = query.filter(IssuedLicence.state == normalize_state(state))
    if status:
        query = query.filter(IssuedLicence.status == status)
    return query.order_by(IssuedLicence.valid_until.desc(), IssuedLicence.id.desc()).all()


def status_history(db: Session, licence_id: int, user: User, state: str | None = None) -> list[StatusHistory]:
    get_licence_for_user(db, licence_id, user)
    query = db.query(StatusHistory).filter(StatusHistory.request_id == licence_id)
    if state:
        query = query.filter(StatusHistory.state == normalize_state(state))
    return query.order_by(StatusHistory.created_at, StatusHistory.id).all()
