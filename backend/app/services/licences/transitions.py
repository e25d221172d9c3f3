"""
Mudança de status de uma UF dentro de um pedido.

Todas as validações acontecem antes de qualquer alteração. A leitura das tags,
a gravação do novo status e o registro no histórico rodam numa transação só,
com a linha do pedido travada (SELECT ... FOR UPDATE). A tabela de licenças
emitidas e os avisos em tempo real são atualizados depois do commit e nunca
desfazem a mudança de status.
"""
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from app.core.audit import AuditEvent, record_audit_event
from app.core.errors import (
    DuplicatePermitNumberError,
    InvalidStateError,
    NotFoundError,
    SyncFailure,
    ValidationError,
)
from app.models.issued_licence import IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.status_history import StatusHistory
from app.models.transporter import Transporter
from app.realtime import events
from app.services.licences import ledger, state_tags
from app.services.licences.utils import normalize_cnpj, normalize_state
from app.services.licences.workflow import (
    AET_NUMBER_REQUIRED,
    APPROVED,
    CANCELED,
    PENDING_REGISTRATION,
    STATUS_LABELS,
    STATUSES,
    can_transition,
)
from app.services.storage import DocumentUpload

logger = logging.getLogger(__name__)


def _lock_licence(db: Session, licence_id: int) -> LicenceRequest:
    licence = (
        db.query(LicenceRequest)
        .filter(LicenceRequest.id == licence_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if licence is None:
        raise NotFoundError(f"Licença {licence_id} não encontrada")
    return licence


def ensure_unique_permit_number(db: Session, licence: LicenceRequest, state: str, aet_number: str) -> None:
    """Número de AET não pode se repetir em outra UF do pedido nem em outro pedido."""
    for other_state, value in state_tags.tag_values(licence.state_aet_numbers).items():
        if other_state != state and value == aet_number:
            raise DuplicatePermitNumberError(
                f"Número de AET {aet_number} já usado no estado {other_state} desta licença",
                payload={"licence_id": licence.id, "request_number": licence.request_number, "state": other_state},
            )

    # filtro grosso no banco, conferência exata em seguida
    candidates = (
        db.query(LicenceRequest)
        .filter(
            LicenceRequest.id != licence.id,
            cast(LicenceRequest.state_aet_numbers, String).contains(f':{aet_number}"', autoescape=True),
        )
        .all()
    )
    for candidate in candidates:
        for other_state, value in state_tags.tag_values(candidate.state_aet_numbers).items():
            if value == aet_number:
                raise DuplicatePermitNumberError(
                    f"Número de AET {aet_number} já usado na licença {candidate.request_number} ({other_state})",
                    payload={
                        "licence_id": candidate.id,
                        "request_number": candidate.request_number,
                        "state": other_state,
                    },
                )

    issued = (
        db.query(IssuedLicence)
        .filter(IssuedLicence.permit_number == aet_number, IssuedLicence.request_id != licence.id)
        .first()
    )
    if issued is not None:
        raise DuplicatePermitNumberError(
            f"Número de AET {aet_number} já emitido para outra licença",
            payload={
                "licence_id": issued.request_id,
                "request_number": issued.request.request_number if issued.request else None,
                "state": issued.state,
            },
        )


def _check_selected_cnpj(db: Session, licence: LicenceRequest, selected_cnpj: str) -> None:
    if licence.transporter_id is None:
        return
    transporter = db.get(Transporter, licence.transporter_id)
    if transporter is None:
        return
    allowed = {normalize_cnpj(value) for value in transporter.tax_ids()}
    if selected_cnpj not in allowed:
        raise ValidationError(f"CNPJ {selected_cnpj} não pertence ao transportador da licença")


def _document_folder(db: Session, licence: LicenceRequest, state: str) -> list[str]:
    transporter = db.get(Transporter, licence.transporter_id) if licence.transporter_id else None
    return ["licences", transporter.name if transporter else "sem-transportador", state, licence.request_number]


def _all_states_approved(licence: LicenceRequest) -> bool:
    records = state_tags.decode(licence.state_statuses)
    return all(
        state in records and records[state].status == APPROVED
        for state in licence.states or []
    )


def _sync_ledger_after_commit(
    db: Session,
    licence: LicenceRequest,
    state: str,
    old_status: str,
    new_status: str,
    aet_number: str | None,
    valid_until: date | None,
    issued_at: date | None,
) -> None:
    try:
        if new_status == APPROVED:
            ledger.sync_approved_state(db, licence, state, aet_number, valid_until, issued_at)
        elif old_status == APPROVED and new_status == CANCELED:
            ledger.cancel_state(db, licence.id, state)
        else:
            return
        db.commit()
    except Exception as exc:
        db.rollback()
        failure = SyncFailure(licence.id, state, exc)
        logger.error("%s", failure, exc_info=exc)


def _discard_document(blob_store, file_url: str) -> None:
    try:
        blob_store.delete(file_url)
    except Exception:
        logger.exception("document_cleanup_failed url=%s", file_url)


def _notify_after_commit(registry, licence: LicenceRequest, state: str, new_status: str) -> None:
    try:
        events.publish(
            registry,
            events.status_update(licence, state, new_status),
            events.dashboard_update("status_update"),
        )
    except Exception:
        logger.exception("realtime_publish_failed licence_id=%s state=%s status=%s", licence.id, state, new_status)


def transition(
    db: Session,
    licence_id: int,
    state: str,
    new_status: str,
    *,
    actor_id: str,
    comments: str | None = None,
    valid_until: date | None = None,
    issued_at: date | None = None,
    aet_number: str | None = None,
    document: DocumentUpload | None = None,
    selected_cnpj: str | None = None,
    blob_store=None,
    registry=None,
) -> LicenceRequest:
    state = normalize_state(state)
    new_status = (new_status or "").strip()
    aet_number = (aet_number or "").strip() or None
    selected_cnpj = normalize_cnpj(selected_cnpj) or None

    file_url = None
    try:
        licence = _lock_licence(db, licence_id)
        if licence.is_draft:
            raise ValidationError("Rascunhos não têm status por estado")
        if state not in (licence.states or []):
            raise InvalidStateError(f"Estado {state} não faz parte da licença {licence.request_number}")
        if new_status not in STATUSES:
            raise ValidationError(f"Status inválido: {new_status}")

        current = state_tags.decode(licence.state_statuses).get(state)
        old_status = current.status if current else PENDING_REGISTRATION
        if not can_transition(old_status, new_status):
            raise ValidationError(
                f"Não é possível passar de {STATUS_LABELS.get(old_status, old_status)} "
                f"para {STATUS_LABELS.get(new_status, new_status)}"
            )

        if new_status == APPROVED:
            if valid_until is None or issued_at is None:
                raise ValidationError("Data de emissão e validade são obrigatórias para liberar a licença")
            if issued_at > valid_until:
                raise ValidationError("Data de emissão posterior à validade")

        effective_aet = aet_number or state_tags.tag_value(licence.state_aet_numbers, state)
        if new_status in AET_NUMBER_REQUIRED and not effective_aet:
            raise ValidationError(f"Número da AET obrigatório para o status {STATUS_LABELS[new_status]}")
        if aet_number:
            ensure_unique_permit_number(db, licence, state, aet_number)
        if selected_cnpj:
            _check_selected_cnpj(db, licence, selected_cnpj)
        if document is not None and blob_store is None:
            raise ValidationError("Armazenamento de arquivos indisponível")

        if document is not None:
            file_url = blob_store.save(document, folder_parts=_document_folder(db, licence, state))

        is_approved = new_status == APPROVED
        licence.state_statuses = state_tags.upsert(
            licence.state_statuses,
            state,
            state_tags.encode(
                state,
                new_status,
                valid_until if is_approved else None,
                issued_at if is_approved else None,
            ),
        )
        if file_url:
            licence.state_files = state_tags.upsert(
                licence.state_files, state, state_tags.value_tag(state, file_url)
            )
        if aet_number:
            licence.state_aet_numbers = state_tags.upsert(
                licence.state_aet_numbers, state, state_tags.value_tag(state, aet_number)
            )
        if selected_cnpj:
            licence.state_cnpjs = state_tags.upsert(
                licence.state_cnpjs, state, state_tags.value_tag(state, selected_cnpj)
            )
        if is_approved and _all_states_approved(licence):
            licence.status = APPROVED

        db.add(
            StatusHistory(
                request_id=licence.id,
                state=state,
                user_id=actor_id,
                old_status=old_status,
                new_status=new_status,
                comments=comments,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        if file_url:
            _discard_document(blob_store, file_url)
        raise

    db.refresh(licence)
    record_audit_event(
        AuditEvent(
            action="state_status_changed",
            entity="licence_request",
            entity_id=str(licence.id),
            actor_id=actor_id,
            detail=f"{state}:{old_status}->{new_status}",
        )
    )

    _sync_ledger_after_commit(db, licence, state, old_status, new_status, effective_aet, valid_until, issued_at)
    db.refresh(licence)

    _notify_after_commit(registry, licence, state, new_status)
    return licence
