from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from app.dealerdesk.db import session_scope
from app.dealerdesk.models import AuditLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    actor_id: str | None
    actor_email: str | None
    action: str
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    request_id: str | None = None


def record_event(s: Session, entry: AuditEntry) -> AuditLog:
    """
    Append-only audit event helper. Adds the row to `s`; the caller commits.
    """
    ev = AuditLog(
        request_id=entry.request_id,
        user_id=entry.actor_id,
        user_email=entry.actor_email or "unknown",
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        details_json=json.dumps(entry.details, sort_keys=True, default=str) if entry.details else None,
        ip_address=entry.ip_address,
    )
    s.add(ev)
    return ev


class AuditRecorder:
    """
    Best-effort durable audit writes. Each record is its own transaction so a
    failed insert can never roll back the mutation it describes.
    """

    def __init__(self, sm: sessionmaker):
        self._sm = sm

    def record(self, entry: AuditEntry) -> bool:
        try:
            with session_scope(self._sm) as s:
                record_event(s, entry)
        except Exception:
            logger.exception(
                "Audit log write failed (action=%s entity=%s:%s actor=%s request_id=%s)",
                entry.action,
                entry.entity_type,
                entry.entity_id,
                entry.actor_id,
                entry.request_id,
            )
            return False
        return True


def audit_details(ev: AuditLog) -> dict[str, Any] | None:
    if not ev.details_json:
        return None
    try:
        return json.loads(ev.details_json)
    except ValueError:
        return {"raw": ev.details_json}


def serialize_event(ev: AuditLog) -> dict[str, Any]:
    return {
        "id": ev.id,
        "created_at": ev.created_at.isoformat() if ev.created_at else None,
        "user_id": ev.user_id,
        "user_email": ev.user_email,
        "action": ev.action,
        "entity_type": ev.entity_type,
        "entity_id": ev.entity_id,
        "details": audit_details(ev),
        "ip_address": ev.ip_address,
    }
