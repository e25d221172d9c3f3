"""
Bloqueio de pedidos duplicados.

Um pedido novo para uma UF é bloqueado quando já existe licença ativa e
vigente na mesma UF com alguma placa em comum e faltam mais de
RENEWAL_WINDOW_DAYS dias para o vencimento. Dentro da janela o pedido é
tratado como renovação e segue normalmente.

Só as placas de cavalo, 1ª e 2ª carreta participam da comparação; dolly,
prancha e reboque ficam de fora.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.models.issued_licence import LEDGER_ACTIVE, IssuedLicence
from app.services.licences.utils import normalize_plates, normalize_state

MATCHED_PLATE_FIELDS = ("tractor_plate", "first_trailer_plate", "second_trailer_plate")

_SECONDS_PER_DAY = 86400


@dataclass
class Conflict:
    state: str
    licence_id: int
    request_number: str | None
    permit_number: str
    valid_until: date
    days_remaining: int
    conflicting_plates: list[str] = field(default_factory=list)
    blocking: bool = True

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "licence_id": self.licence_id,
            "request_number": self.request_number,
            "permit_number": self.permit_number,
            "valid_until": self.valid_until.isoformat(),
            "days_remaining": self.days_remaining,
            "conflicting_plates": list(self.conflicting_plates),
            "blocking": self.blocking,
        }


def _naive_now(now: datetime | None) -> datetime:
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    return now


def days_until(valid_until: date, now: datetime) -> int:
    delta = datetime.combine(valid_until, time.min) - now
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def latest_covering_permit(
    db: Session,
    target_state: str,
    target_plates: Iterable[str],
    now: datetime | None = None,
    window_days: int | None = None,
) -> Conflict | None:
    """Licença ativa mais longa que cobre a UF e alguma das placas, bloqueando ou não."""
    state = normalize_state(target_state)
    plates = normalize_plates(target_plates)
    if not state or not plates:
        return None
    now = _naive_now(now)
    window_days = settings.RENEWAL_WINDOW_DAYS if window_days is None else window_days

    entry = (
        db.query(IssuedLicence)
        .options(joinedload(IssuedLicence.request))
        .filter(
            IssuedLicence.state == state,
            IssuedLicence.status == LEDGER_ACTIVE,
            IssuedLicence.valid_until > now.date(),
            or_(*[getattr(IssuedLicence, name).in_(plates) for name in MATCHED_PLATE_FIELDS]),
        )
        .order_by(IssuedLicence.valid_until.desc(), IssuedLicence.id.desc())
        .first()
    )
    if entry is None:
        return None

    remaining = days_until(entry.valid_until, now)
    overlapping = []
    for name in MATCHED_PLATE_FIELDS:
        plate = getattr(entry, name)
        if plate and plate in plates and plate not in overlapping:
            overlapping.append(plate)

    return Conflict(
        state=state,
        licence_id=entry.request_id,
        request_number=entry.request.request_number if entry.request else None,
        permit_number=entry.permit_number,
        valid_until=entry.valid_until,
        days_remaining=remaining,
        conflicting_plates=overlapping,
        blocking=remaining > window_days,
    )


def find_blocking_conflict(
    db: Session,
    target_state: str,
    target_plates: Iterable[str],
    now: datetime | None = None,
) -> Conflict | None:
    conflict = latest_covering_permit(db, target_state, target_plates, now=now)
    if conflict is None or not conflict.blocking:
        return None
    return conflict


def check_existing(
    db: Session,
    states: Iterable[str],
    plates: Iterable[str],
    now: datetime | None = None,
) -> list[Conflict]:
    plates = normalize_plates(plates)
    conflicts: list[Conflict] = []
    seen: set[str] = set()
    for raw_state in states or []:
        state = normalize_state(raw_state)
        if not state or state in seen:
            continue
        seen.add(state)
        conflict = find_blocking_conflict(db, state, plates, now=now)
        if conflict is not None:
            conflicts.append(conflict)
    return conflicts
