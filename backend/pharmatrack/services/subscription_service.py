# Overview: Subscription lifecycle engine; lazy status correction, trial activation, upgrades.

"""
Subscription Lifecycle Engine

WHY: A shop's stored subscription_status can go stale the moment a trial or
paid period runs out. Nothing sweeps it in the background; instead every
entry point (login, the request gate, the status endpoint) runs the same pure
evaluation and persists the correction before answering.

STATE MACHINE:
    inactive -> trial -> {active, expired}
    expired  -> active            (upgrade)
    any      -> suspended         (administrative action, terminal)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..errors import AuthError, NotFoundError, SubscriptionError, ValidationError
from ..models import Shop
from pharmatrack.time_utils import to_utc_z, utcnow


PRICING = {
    "monthly": {"price": 699, "duration_days": 30},
    "quarterly": {"price": 1899, "duration_days": 90},
    "halfYearly": {"price": 3299, "duration_days": 180},
    "yearly": {"price": 5999, "duration_days": 365},
}
MONTHLY_PRICE = PRICING["monthly"]["price"]
EXPIRY_WARNING_DAYS = 7

BLOCKED_MESSAGES = {
    "inactive": "Trial not activated. Please activate your free 30-day trial to continue.",
    "trial_expired": f"Free trial expired. Please subscribe for ₹{MONTHLY_PRICE}/month to continue.",
    "active_expired": f"Subscription expired. Please renew for ₹{MONTHLY_PRICE}/month.",
    "expired": f"Subscription expired. Please renew for ₹{MONTHLY_PRICE}/month.",
    "suspended": "Account suspended. Contact support.",
    "deactivated": "Account deactivated. Contact support.",
    "unknown": "Subscription not configured. Contact support.",
}


@dataclass(frozen=True)
class SubscriptionDecision:
    allowed: bool
    status: str
    changed: bool = False
    message: str | None = None


def evaluate_subscription(
    status: str | None,
    trial_ends_at: datetime | None,
    subscription_expires_at: datetime | None,
    now: datetime,
) -> SubscriptionDecision:
    """
    Pure lifecycle evaluation. No I/O.

    Returns the effective status at `now` and whether requests may proceed.
    `changed` is True when the caller must persist the new status.
    """
    if status == "trial":
        if trial_ends_at is not None and trial_ends_at < now:
            return SubscriptionDecision(False, "expired", True, BLOCKED_MESSAGES["trial_expired"])
        return SubscriptionDecision(True, "trial")

    if status == "active":
        if subscription_expires_at is not None and subscription_expires_at < now:
            return SubscriptionDecision(False, "expired", True, BLOCKED_MESSAGES["active_expired"])
        return SubscriptionDecision(True, "active")

    if status in ("inactive", "expired", "suspended"):
        return SubscriptionDecision(False, status, False, BLOCKED_MESSAGES[status])

    return SubscriptionDecision(False, status or "unknown", False, BLOCKED_MESSAGES["unknown"])


def refresh_shop_status(shop: Shop, now: datetime | None = None, commit: bool = True) -> SubscriptionDecision:
    """Evaluate a shop and persist a lazy trial/active -> expired transition."""
    now = now or utcnow()
    decision = evaluate_subscription(
        shop.subscription_status,
        shop.trial_ends_at,
        shop.subscription_expires_at,
        now,
    )
    if decision.changed:
        current_app.logger.info(
            "Shop %s subscription %s -> %s",
            shop.id, shop.subscription_status, decision.status,
        )
        shop.subscription_status = decision.status
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    if decision.allowed and not shop.is_active:
        return SubscriptionDecision(False, decision.status, decision.changed, BLOCKED_MESSAGES["deactivated"])
    return decision


def get_shop_or_401(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if shop is None:
        raise AuthError("Shop not found for this account")
    return shop


def require_active_subscription(shop_id: int, now: datetime | None = None) -> Shop:
    """
    Request-gate check. Raises SubscriptionError unless the shop may be served.

    The expired transition is committed before the error is raised.
    """
    shop = get_shop_or_401(shop_id)
    decision = refresh_shop_status(shop, now=now)
    if not decision.allowed:
        raise SubscriptionError(decision.message, status=decision.status)
    return shop


def _days_remaining(end: datetime | None, now: datetime) -> int | None:
    if end is None:
        return None
    seconds = (end - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def get_subscription_details(shop: Shop, now: datetime | None = None) -> dict:
    """Lifecycle snapshot for login responses and the status endpoint."""
    now = now or utcnow()
    decision = refresh_shop_status(shop, now=now)

    if shop.subscription_status == "trial":
        days_remaining = _days_remaining(shop.trial_ends_at, now)
    elif shop.subscription_status == "active":
        days_remaining = _days_remaining(shop.subscription_expires_at, now)
    else:
        days_remaining = 0

    return {
        "shop_id": shop.id,
        "shop_name": shop.shop_name,
        "subscription_type": shop.subscription_type,
        "subscription_status": shop.subscription_status,
        "trial_ends_at": to_utc_z(shop.trial_ends_at),
        "subscription_expires_at": to_utc_z(shop.subscription_expires_at),
        "days_remaining": days_remaining,
        "will_expire_soon": bool(
            decision.allowed
            and days_remaining is not None
            and days_remaining <= EXPIRY_WARNING_DAYS
        ),
        "is_allowed": decision.allowed,
        "message": decision.message,
        "monthly_price": MONTHLY_PRICE,
    }


def initialize_trial(shop: Shop, now: datetime | None = None) -> Shop:
    """Put a shop into its free trial window (no commit)."""
    now = now or utcnow()
    shop.subscription_type = "trial"
    shop.subscription_status = "trial"
    shop.trial_ends_at = now + timedelta(days=current_app.config["TRIAL_DAYS"])
    shop.subscription_expires_at = None
    return shop


def start_trial(
    shop_id: int,
    *,
    email: str | None = None,
    phone: str | None = None,
    now: datetime | None = None,
) -> Shop:
    """
    Activate the free trial. Only an inactive shop can do this, once.

    email and phone are recorded on the shop when given.
    """
    shop = get_shop_or_401(shop_id)
    if shop.subscription_status != "inactive":
        raise ValidationError(
            "Trial already used or subscription already configured",
            details={"subscription_status": shop.subscription_status},
        )

    if email:
        email = email.strip().lower()
        taken = (
            db.session.query(Shop.id)
            .filter(Shop.owner_email == email, Shop.id != shop.id)
            .first()
        )
        if taken:
            raise ValidationError("Email already registered to another shop")
        shop.owner_email = email
    if phone:
        shop.phone = phone.strip()

    initialize_trial(shop, now=now)
    db.session.commit()
    return shop


def upgrade_subscription(shop_id: int, plan_type: str, now: datetime | None = None) -> Shop:
    """
    Move a shop onto a paid plan starting now.

    A suspended shop stays suspended; only manual intervention lifts that.
    """
    plan = PRICING.get(plan_type)
    if plan is None:
        raise ValidationError(
            "Invalid plan type",
            details={"allowed_plans": list(PRICING)},
        )

    shop = get_shop_or_401(shop_id)
    if shop.subscription_status == "suspended":
        raise SubscriptionError(BLOCKED_MESSAGES["suspended"], status="suspended")

    now = now or utcnow()
    shop.subscription_type = plan_type
    shop.subscription_status = "active"
    shop.subscription_expires_at = now + timedelta(days=plan["duration_days"])
    db.session.commit()
    return shop


def suspend_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    shop.subscription_status = "suspended"
    db.session.commit()
    return shop


def list_plans() -> list[dict]:
    return [
        {"plan_type": name, "price": plan["price"], "duration_days": plan["duration_days"]}
        for name, plan in PRICING.items()
    ]
