from __future__ import annotations

from collections import Counter
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.issued_licence import LEDGER_ACTIVE, IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.transporter import Transporter
from app.models.user import User
from app.models.vehicle import Vehicle
from app.services.licences import state_tags
from app.services.licences.workflow import APPROVED, PENDING_REGISTRATION, REJECTED, CANCELED


def _scoped_requests(db: Session, user: User):
    query = db.query(LicenceRequest)
    if user.is_staff:
        return query
    linked = select(Transporter.id).where(Transporter.user_id == user.id)
    return query.filter((LicenceRequest.user_id == user.id) | LicenceRequest.transporter_id.in_(linked))


def compute_stats(db: Session, user: User, today: date | None = None) -> dict:
    today = today or date.today()
    requests = _scoped_requests(db, user).all()
    submitted = [licence for licence in requests if not licence.is_draft]

    state_distribution: Counter[str] = Counter()
    status_distribution: Counter[str] = Counter()
    issued = pending = 0
    for licence in submitted:
        records = state_tags.decode(licence.state_statuses)
        for state in licence.states or []:
            state_distribution[state] += 1
            status = records[state].status if state in records else PENDING_REGISTRATION
            status_distribution[status] += 1
        if licence.status == APPROVED:
            issued += 1
        elif not any(
            state in records and records[state].status in (REJECTED, CANCELED) for state in licence.states or []
        ):
            pending += 1

    vehicles = db.query(Vehicle)
    if not user.is_staff:
        vehicles = vehicles.filter(Vehicle.user_id == user.id)
    vehicle_rows = vehicles.all()

    submitted_ids = [licence.id for licence in submitted]
    expiring_soon = 0
    if submitted_ids:
        expiring_soon = (
            db.query(IssuedLicence)
            .filter(
                IssuedLicence.request_id.in_(submitted_ids),
                IssuedLicence.status == LEDGER_ACTIVE,
                IssuedLicence.valid_until >= today,
                IssuedLicence.valid_until <= today + timedelta(days=settings.EXPIRING_SOON_DAYS),
            )
            .count()
        )

    return {
        "issued_licences": issued,
        "pending_licences": pending,
        "registered_vehicles": len(vehicle_rows),
        "active_vehicles": sum(1 for vehicle in vehicle_rows if vehicle.status == "active"),
        "expiring_soon": expiring_soon,
        "drafts": len(requests) - len(submitted),
        "state_distribution": dict(state_distribution),
        "status_distribution": dict(status_distribution),
    }
