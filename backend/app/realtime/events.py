from __future__ import annotations

from datetime import datetime
from typing import Any

from app.models.licence_request import LicenceRequest
from app.schemas.licence import build_licence_out

STATUS_UPDATE = "STATUS_UPDATE"
LICENSE_CREATED = "LICENSE_CREATED"
LICENSE_UPDATE = "LICENSE_UPDATE"
LICENSE_DELETED = "LICENSE_DELETED"
DASHBOARD_UPDATE = "DASHBOARD_UPDATE"
CONNECTED = "CONNECTED"


def _now() -> str:
    return datetime.now().isoformat()


def _licence_payload(licence: LicenceRequest) -> dict[str, Any]:
    return build_licence_out(licence).model_dump(mode="json")


def connected() -> dict[str, Any]:
    return {"type": CONNECTED, "message": "Conectado ao servidor", "timestamp": _now()}


def status_update(licence: LicenceRequest, state: str, status: str) -> dict[str, Any]:
    return {
        "type": STATUS_UPDATE,
        "data": {
            "licenseId": licence.id,
            "state": state,
            "status": status,
            "updatedAt": _now(),
            "license": _licence_payload(licence),
        },
    }


def licence_created(licence: LicenceRequest) -> dict[str, Any]:
    return {"type": LICENSE_CREATED, "data": {"licenseId": licence.id, "license": _licence_payload(licence)}}


def licence_updated(licence: LicenceRequest) -> dict[str, Any]:
    return {"type": LICENSE_UPDATE, "data": {"licenseId": licence.id, "license": _licence_payload(licence)}}


def licence_deleted(licence_id: int, request_number: str) -> dict[str, Any]:
    return {"type": LICENSE_DELETED, "data": {"licenseId": licence_id, "requestNumber": request_number}}


def dashboard_update(reason: str) -> dict[str, Any]:
    return {"type": DASHBOARD_UPDATE, "data": {"reason": reason, "updatedAt": _now()}}


def publish(registry, *events: dict[str, Any]) -> None:
    if registry is None:
        return
    for event in events:
        registry.broadcast(event)
