# Overview: Shop KPIs; every aggregate filters by shop_id before grouping.

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy import case, func

from ..extensions import db
from ..models import Medicine, Sale, SaleItem
from ..money import ZERO, as_float, quantize
from pharmatrack.time_utils import month_start, parse_expiry, start_of_day, utcnow


# Estimated cost of goods as a share of the pre-tax subtotal
COST_RATIO = Decimal("0.85")
TOP_MEDICINES_LIMIT = 5


def _sum(column, *filters) -> Decimal:
    value = db.session.query(func.coalesce(func.sum(column), 0)).filter(*filters).scalar()
    return quantize(value)


def get_cards(shop_id: int, now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)

    today_rows = (
        db.session.query(Sale.final_total, Sale.subtotal)
        .filter(Sale.shop_id == shop_id, Sale.created_at >= today)
        .all()
    )
    revenue = ZERO
    profit = ZERO
    for final_total, subtotal in today_rows:
        final_total = quantize(final_total)
        revenue += final_total
        profit += max(ZERO, final_total - quantize(subtotal) * COST_RATIO)

    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    low_stock = (
        db.session.query(func.count(Medicine.id))
        .filter(Medicine.shop_id == shop_id, Medicine.stock < threshold)
        .scalar()
    )

    return {
        "today_revenue": as_float(revenue),
        "today_profit": as_float(quantize(profit)),
        "today_sales_count": len(today_rows),
        "credit_outstanding": as_float(_sum(Sale.due, Sale.shop_id == shop_id)),
        "low_stock_count": int(low_stock or 0),
        "expiry_alert": count_expiring(shop_id, now),
    }


def count_expiring(shop_id: int, now: datetime | None = None) -> int:
    """
    Medicines with stock on hand that expire within EXPIRY_ALERT_DAYS
    (already-expired batches included).

    Expiry is free text, so the date comparison happens after the shop-scoped
    fetch.
    """
    now = now or utcnow()
    horizon = (now + timedelta(days=current_app.config.get("EXPIRY_ALERT_DAYS", 30))).date()
    rows = (
        db.session.query(Medicine.expiry)
        .filter(Medicine.shop_id == shop_id, Medicine.stock > 0, Medicine.expiry != "")
        .all()
    )
    count = 0
    for (expiry,) in rows:
        expires_on = parse_expiry(expiry)
        if expires_on is not None and expires_on <= horizon:
            count += 1
    return count


def get_monthly_revenue(shop_id: int, now: datetime | None = None) -> dict:
    now = now or utcnow()
    this_month = month_start(now)
    last_month = month_start(now, months_back=1)

    current = _sum(Sale.final_total, Sale.shop_id == shop_id, Sale.created_at >= this_month)
    previous = _sum(
        Sale.final_total,
        Sale.shop_id == shop_id,
        Sale.created_at >= last_month,
        Sale.created_at < this_month,
    )

    if previous > 0:
        growth = (current - previous) / previous * 100
    elif current > 0:
        growth = Decimal("100")
    else:
        growth = ZERO

    return {
        "current_month_revenue": as_float(current),
        "last_month_revenue": as_float(previous),
        "growth_percent": round(float(growth), 2),
        "direction": "up" if current >= previous else "down",
    }


def get_top_medicines(shop_id: int, limit: int = TOP_MEDICINES_LIMIT) -> list[dict]:
    """Best sellers by units; the WHERE on shop_id runs before the GROUP BY."""
    qty_sum = func.sum(SaleItem.qty)
    rows = (
        db.session.query(
            SaleItem.name,
            qty_sum.label("qty"),
            func.sum(SaleItem.line_total).label("revenue"),
        )
        .filter(SaleItem.shop_id == shop_id)
        .group_by(SaleItem.name)
        .order_by(qty_sum.desc(), SaleItem.name.asc())
        .limit(limit)
        .all()
    )
    return [
        {"name": name, "qty": int(qty or 0), "revenue": as_float(quantize(revenue))}
        for name, qty, revenue in rows
    ]


def get_stats(shop_id: int, now: datetime | None = None) -> dict:
    monthly = get_monthly_revenue(shop_id, now)
    totals = (
        db.session.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.final_total), 0),
            func.coalesce(func.sum(case((Sale.due > 0, 1), else_=0)), 0),
        )
        .filter(Sale.shop_id == shop_id)
        .one()
    )
    return {
        "current_month_revenue": monthly["current_month_revenue"],
        "last_month_revenue": monthly["last_month_revenue"],
        "total_sales": int(totals[0] or 0),
        "total_revenue": as_float(quantize(totals[1])),
        "sales_with_due": int(totals[2] or 0),
        "top_medicines": get_top_medicines(shop_id),
    }
