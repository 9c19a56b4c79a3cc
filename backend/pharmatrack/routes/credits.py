# Overview: Flask API routes for credit records and payments.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok
from ..services import credit_service
from ..services.tenant_service import get_current_shop_id


credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


@credits_bp.get("")
@require_auth
@require_subscription
@require_permission("VIEW_CREDITS")
def list_credits_route():
    result = credit_service.list_credits(get_current_shop_id(), status=request.args.get("status"))
    return ok(result)


@credits_bp.put("/<int:credit_id>/payment")
@require_auth
@require_subscription
@require_permission("RECORD_CREDIT_PAYMENT")
def record_payment_route(credit_id: int):
    """Body: {"paid": <cumulative amount paid>}."""
    credit = credit_service.record_payment(
        get_current_shop_id(),
        credit_id,
        json_body().get("paid"),
        user_id=g.current_user_id,
    )
    return ok(credit.to_dict(), message="Payment recorded")
