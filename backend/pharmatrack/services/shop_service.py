# Overview: Platform-level shop directory for superadmin tooling.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..errors import NotFoundError
from ..models import Shop, User
from . import subscription_service


def list_shops(status: str | None = None) -> list[dict]:
    """Every shop with its corrected lifecycle snapshot and user count."""
    shops = db.session.query(Shop).order_by(Shop.id.asc()).all()

    user_counts = dict(
        db.session.query(User.shop_id, func.count(User.id))
        .filter(User.shop_id.isnot(None))
        .group_by(User.shop_id)
        .all()
    )

    rows = []
    for shop in shops:
        snapshot = subscription_service.get_subscription_details(shop)
        if status and shop.subscription_status != status:
            continue
        rows.append({
            **shop.to_dict(),
            "user_count": user_counts.get(shop.id, 0),
            "subscription": snapshot,
        })
    return rows


def get_shop_or_404(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop
