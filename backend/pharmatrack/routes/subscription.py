# Overview: Flask API routes for the shop's subscription lifecycle.

"""
Subscription routes sit behind the token and tenant checks only; the
subscription gate itself is skipped here so a blocked shop can still see its
status and pay.
"""

from flask import Blueprint, current_app, g

from ..decorators import require_auth, require_permission
from ..responses import json_body, ok
from ..services import activity_service, subscription_service
from ..services.tenant_service import get_current_shop_id
from ..extensions import db


subscription_bp = Blueprint("subscription", __name__, url_prefix="/api/subscription")


@subscription_bp.get("/plans")
def plans_route():
    return ok(subscription_service.list_plans())


@subscription_bp.get("/status")
@require_auth
def status_route():
    shop = subscription_service.get_shop_or_401(get_current_shop_id())
    return ok(subscription_service.get_subscription_details(shop))


@subscription_bp.post("/activate")
@require_auth
@require_permission("MANAGE_SUBSCRIPTION")
def activate_route():
    """Body: {"plan_type": "monthly" | "quarterly" | "halfYearly" | "yearly"}."""
    data = json_body()
    plan_type = data.get("plan_type", data.get("planType"))
    shop_id = get_current_shop_id()

    shop = subscription_service.upgrade_subscription(shop_id, plan_type)
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=g.current_user_id,
        action="subscription_change",
        entity_type="shop",
        entity_id=shop_id,
        description=f"Activated {plan_type} plan",
    )
    db.session.commit()
    current_app.logger.info("Shop %s upgraded to %s", shop_id, plan_type)
    return ok(subscription_service.get_subscription_details(shop), message="Subscription activated")


@subscription_bp.post("/start-trial")
@require_auth
@require_permission("MANAGE_SUBSCRIPTION")
def start_trial_route():
    data = json_body()
    shop_id = get_current_shop_id()
    shop = subscription_service.start_trial(shop_id, email=data.get("email"), phone=data.get("phone"))
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=g.current_user_id,
        action="subscription_change",
        entity_type="shop",
        entity_id=shop_id,
        description="Started free trial",
    )
    db.session.commit()
    return ok(subscription_service.get_subscription_details(shop), message="Free trial activated")
