# Overview: Flask API routes for platform superadmins (cross-shop administration).

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_superadmin
from ..responses import json_body, ok
from ..services import permission_service, shop_service, subscription_service


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/shops")
@require_auth
@require_superadmin
def list_shops_route():
    return ok(shop_service.list_shops(status=request.args.get("status")))


@admin_bp.post("/shops/<int:shop_id>/suspend")
@require_auth
@require_superadmin
def suspend_shop_route(shop_id: int):
    shop = subscription_service.suspend_shop(shop_id)
    permission_service.log_security_event(
        user_id=g.current_user_id,
        event_type="SHOP_SUSPENDED",
        success=True,
        resource=request.path,
        action=request.method,
        reason=json_body().get("reason"),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        shop_id=shop.id,
    )
    current_app.logger.warning("Shop %s suspended by user %s", shop.id, g.current_user_id)
    return ok(shop.to_dict(), message="Shop suspended")


@admin_bp.post("/shops/<int:shop_id>/upgrade")
@require_auth
@require_superadmin
def upgrade_shop_route(shop_id: int):
    data = json_body()
    shop_service.get_shop_or_404(shop_id)
    shop = subscription_service.upgrade_subscription(shop_id, data.get("plan_type"))
    return ok(shop.to_dict(), message="Subscription updated")
