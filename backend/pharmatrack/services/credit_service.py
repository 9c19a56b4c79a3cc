# Overview: Shop-scoped credit (unpaid balance) tracking and payments.

from __future__ import annotations

from ..extensions import db
from ..errors import ValidationError
from ..models import Credit
from ..money import ZERO, to_money
from . import activity_service, settings_service
from .concurrency import lock_for_update
from .tenant_service import get_owned_or_404, scoped_query


CREDIT_STATUSES = ("pending", "paid")


def list_credits(shop_id: int, status: str | None = None) -> dict:
    query = scoped_query(Credit, shop_id)
    if status:
        if status not in CREDIT_STATUSES:
            raise ValidationError("Invalid status", details={"allowed": list(CREDIT_STATUSES)})
        query = query.filter(Credit.status == status)

    credits = query.order_by(Credit.created_at.desc(), Credit.id.desc()).all()
    store_name = settings_service.get_settings(shop_id).store_name
    return {
        "store_name": store_name,
        "credits": [credit.to_dict() for credit in credits],
    }


def record_payment(shop_id: int, credit_id, paid, user_id: int | None = None) -> Credit:
    """
    Set the cumulative amount paid against a credit.

    due = max(0, total_amount - paid); status follows due. The linked sale's
    paid/due move with it so customer aggregates stay in step.
    """
    if paid is None or paid == "":
        raise ValidationError("paid is required")
    amount = to_money(paid, "paid")

    credit = get_owned_or_404(Credit, credit_id, shop_id, label="Credit")
    # Concurrent payments on one credit serialize here
    credit = lock_for_update(scoped_query(Credit, shop_id).filter(Credit.id == credit.id)).one()
    credit.paid = amount
    credit.due = max(ZERO, credit.total_amount - amount)
    credit.recompute_status()

    sale = credit.sale
    if sale is not None and sale.shop_id == shop_id:
        sale.paid = min(credit.paid, sale.final_total)
        sale.due = credit.due

    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="update_credit",
        entity_type="credit",
        entity_id=credit.id,
        description=f"Payment recorded: paid {amount}, due {credit.due}",
    )
    db.session.commit()
    return credit
