# Overview: Flask API routes for shop dashboard KPIs.

from flask import Blueprint

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import ok
from ..services import dashboard_service
from ..services.tenant_service import get_current_shop_id


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/cards")
@require_auth
@require_subscription
@require_permission("VIEW_DASHBOARD")
def cards_route():
    return ok(dashboard_service.get_cards(get_current_shop_id()))


@dashboard_bp.get("/stats")
@require_auth
@require_subscription
@require_permission("VIEW_DASHBOARD")
def stats_route():
    return ok(dashboard_service.get_stats(get_current_shop_id()))


@dashboard_bp.get("/monthly-revenue")
@require_auth
@require_subscription
@require_permission("VIEW_DASHBOARD")
def monthly_revenue_route():
    return ok(dashboard_service.get_monthly_revenue(get_current_shop_id()))


@dashboard_bp.get("/top-medicines")
@require_auth
@require_subscription
@require_permission("VIEW_DASHBOARD")
def top_medicines_route():
    return ok(dashboard_service.get_top_medicines(get_current_shop_id()))
