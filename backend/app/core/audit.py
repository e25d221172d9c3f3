import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEvent:
    action: str
    entity: str
    entity_id: str
    actor_id: Optional[str] = None
    detail: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


def record_audit_event(event: AuditEvent) -> None:
    """
    Logs the event. Per-state transitions are persisted separately in status_histories.
    """
    logger.info(
        "audit_event action=%s entity=%s entity_id=%s actor_id=%s detail=%s",
        event.action,
        event.entity,
        event.entity_id,
        event.actor_id,
        event.detail,
    )
