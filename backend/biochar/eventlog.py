"""Utilities for recording issuance lifecycle events."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator
from uuid import UUID

from sqlalchemy.orm import Session

from . import models
from .errors import StateConflictError

# purpose: append-only audit trail of CORC and BCU state transitions
# inputs: SQLAlchemy session, transitioned entity, action and status pair
# outputs: IssuanceEvent rows with per-entity sequential ordering
# status: active

logger = logging.getLogger(__name__)


def record_issuance_event(
    db: Session,
    entity_type: str,
    entity: Any,
    action: str,
    *,
    from_status: str | None = None,
    to_status: str | None = None,
    detail: dict[str, Any] | None = None,
) -> models.IssuanceEvent:
    """Stage an issuance event on the session; the caller commits."""

    latest = (
        db.query(models.IssuanceEvent)
        .filter(
            models.IssuanceEvent.entity_type == entity_type,
            models.IssuanceEvent.entity_id == entity.id,
        )
        .order_by(models.IssuanceEvent.sequence.desc())
        .first()
    )
    next_sequence = 1 if latest is None else latest.sequence + 1
    event = models.IssuanceEvent(
        entity_type=entity_type,
        entity_id=entity.id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        detail=_jsonable(detail or {}),
        sequence=next_sequence,
        created_at=datetime.now(timezone.utc),
    )
    db.add(event)
    return event


def _jsonable(payload: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, datetime):
            cleaned[key] = value.isoformat()
        elif value is None or isinstance(value, (str, int, float, bool)):
            cleaned[key] = value
        else:
            cleaned[key] = str(value)
    return cleaned


@contextmanager
def log_rejection(entity_type: str, entity_id: UUID, action: str) -> Iterator[None]:
    """Log a rejected lifecycle transition and let the error propagate unchanged."""

    try:
        yield
    except StateConflictError as exc:
        logger.warning(
            "Rejected %s of %s %s in status %s: %s",
            action,
            entity_type,
            entity_id,
            exc.current_status,
            exc.message,
        )
        raise
