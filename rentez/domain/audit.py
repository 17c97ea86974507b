# rentez/domain/audit.py
from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from ..models import AuditEvent, utcnow

# Columns captured for each audited entity, keyed by model class name.
AUDIT_FIELDS: dict[str, tuple[str, ...]] = {
    "Application": ("status", "rejection_reason"),
    "Lease": ("property_id", "tenant_id", "start_date", "end_date", "monthly_rent", "status"),
    "RentPayment": ("status", "verification_status", "payment_date", "verified_by_id"),
}


def snapshot(row: Any, fields: Optional[Iterable[str]] = None) -> dict[str, Any]:
    names = tuple(fields) if fields is not None else AUDIT_FIELDS.get(type(row).__name__, ())
    return {f: getattr(row, f, None) for f in names}


def record(
    db: Session,
    *,
    actor_user_id: Optional[int],
    action: str,
    row: Any,
    before: Optional[dict[str, Any]] = None,
    extra: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Stage an audit row for `row` in the caller's transaction.

    The row must already have an id (flush first). Nothing is committed
    here; the event lands or rolls back with the change it describes.
    """
    after = snapshot(row)
    if extra:
        after.update(extra)

    event = AuditEvent(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=type(row).__name__,
        entity_id=str(row.id),
        before_json=json.dumps(before, sort_keys=True, default=str) if before is not None else None,
        after_json=json.dumps(after, sort_keys=True, default=str),
        created_at=utcnow(),
    )
    db.add(event)
    return event
