# Overview: Shop-scoped business activity trail.

from __future__ import annotations

from ..extensions import db
from ..models import ActivityLog, ACTIVITY_ACTIONS
from ..errors import ValidationError


def log_activity(
    *,
    shop_id: int,
    action: str,
    user_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    description: str = "",
) -> ActivityLog:
    """Add an activity row to the caller's transaction (no commit)."""
    entry = ActivityLog(
        shop_id=shop_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description[:512],
    )
    db.session.add(entry)
    return entry


def list_activity(shop_id: int, *, action: str | None = None, limit: int = 50, offset: int = 0) -> dict:
    query = db.session.query(ActivityLog).filter(ActivityLog.shop_id == shop_id)
    if action:
        if action not in ACTIVITY_ACTIONS:
            raise ValidationError("Unknown activity action", details={"allowed": list(ACTIVITY_ACTIONS)})
        query = query.filter(ActivityLog.action == action)

    total = query.count()
    rows = (
        query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return {
        "items": [row.to_dict() for row in rows],
        "count": total,
        "limit": limit,
        "offset": offset,
    }
