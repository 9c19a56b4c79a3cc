# backend/pharmatrack/routes/status.py
"""
Service health endpoints plus authenticated status views.

/health, /ready and /live carry no auth so load balancers and uptime
monitors can probe them.
"""

import time

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..models import Shop, User
from ..responses import ok, pagination_args
from ..services import activity_service, subscription_service
from ..services.tenant_service import get_current_shop_id
from pharmatrack.time_utils import to_utc_z, utcnow


status_bp = Blueprint("status", __name__, url_prefix="/api/status")

_STARTED_AT = time.time()


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial query and basic counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        shop_count = db.session.query(Shop).count()
        user_count = db.session.query(User).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"shops": shop_count, "users": user_count},
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@status_bp.get("/health")
def health_route():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "success": healthy,
        "data": {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": to_utc_z(utcnow()),
            "uptime_seconds": int(time.time() - _STARTED_AT),
            "database": database,
        },
    }
    return jsonify(body), 200 if healthy else 503


@status_bp.get("/ready")
def ready_route():
    database = check_database_health()
    if database["status"] != "healthy":
        return jsonify({"success": False, "message": "Database not ready"}), 503
    return ok({"ready": True})


@status_bp.get("/live")
def live_route():
    return ok({"alive": True})


@status_bp.get("/subscription")
@require_auth
def subscription_status_route():
    shop = subscription_service.get_shop_or_401(get_current_shop_id())
    return ok(subscription_service.get_subscription_details(shop))


@status_bp.get("/activity")
@require_auth
@require_permission("VIEW_ACTIVITY")
def activity_route():
    limit, offset = pagination_args()
    result = activity_service.list_activity(
        get_current_shop_id(),
        action=request.args.get("action"),
        limit=limit,
        offset=offset,
    )
    return ok(result)
