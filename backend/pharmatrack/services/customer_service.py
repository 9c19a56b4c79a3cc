# Overview: Shop-scoped customer directory with purchase aggregates derived from sales.

from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ValidationError
from ..models import Customer, Sale
from ..money import as_float
from . import activity_service, document_service
from .concurrency import RETRYABLE_ERRORS, run_with_retry
from .tenant_service import escape_like, get_owned_or_404, scoped_query
from pharmatrack.time_utils import to_utc_z


def _clean(value, field: str, *, required: bool = False, max_length: int = 255) -> str:
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field} is required")
    if len(value) > max_length:
        raise ValidationError(f"{field} is too long")
    return value


def _aggregates(shop_id: int, customer_ids: list[int]) -> dict[int, dict]:
    """Sum sales per customer; the shop filter runs before the GROUP BY."""
    if not customer_ids:
        return {}
    rows = (
        db.session.query(
            Sale.customer_id,
            func.coalesce(func.sum(Sale.final_total), 0),
            func.coalesce(func.sum(Sale.due), 0),
            func.max(Sale.created_at),
        )
        .filter(Sale.shop_id == shop_id, Sale.customer_id.in_(customer_ids))
        .group_by(Sale.customer_id)
        .all()
    )
    return {
        customer_id: {
            "total_purchases": as_float(total),
            "total_due": as_float(due),
            "last_purchase_date": to_utc_z(last),
        }
        for customer_id, total, due, last in rows
    }


def _with_aggregates(shop_id: int, customers: list[Customer]) -> list[dict]:
    stats = _aggregates(shop_id, [c.id for c in customers])
    empty = {"total_purchases": 0.0, "total_due": 0.0, "last_purchase_date": None}
    return [{**c.to_dict(), **stats.get(c.id, empty)} for c in customers]


def search_customers(shop_id: int, q: str | None = None, limit: int = 100) -> list[dict]:
    """
    Case-insensitive substring search on name OR phone within one shop.

    User text is escaped so % and _ match literally.
    """
    query = scoped_query(Customer, shop_id)
    q = (q or "").strip()
    if q:
        pattern = f"%{escape_like(q.lower())}%"
        query = query.filter(or_(
            func.lower(Customer.name).like(pattern, escape="\\"),
            Customer.phone.like(pattern, escape="\\"),
        ))
    customers = query.order_by(Customer.name.asc(), Customer.id.asc()).limit(limit).all()
    return _with_aggregates(shop_id, customers)


def find_or_create_customer(
    shop_id: int,
    *,
    name,
    phone,
    address=None,
    user_id: int | None = None,
) -> tuple[Customer, bool]:
    """
    Return the shop's customer with this phone, creating it if needed.

    Does not commit; the caller owns the transaction. Returns (customer, created).
    """
    name = _clean(name, "name", required=True, max_length=128)
    phone = _clean(phone, "phone", required=True, max_length=32)
    address = _clean(address, "address")

    existing = scoped_query(Customer, shop_id).filter(Customer.phone == phone).first()
    if existing:
        return existing, False

    customer = Customer(
        shop_id=shop_id,
        name=name,
        phone=phone,
        address=address,
        customer_id=document_service.next_customer_code(shop_id),
    )
    db.session.add(customer)
    db.session.flush()
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="create_customer",
        entity_type="customer",
        entity_id=customer.id,
        description=f"Added customer {name} ({phone})",
    )
    return customer, True


def create_customer(shop_id: int, payload: dict, user_id: int | None = None) -> tuple[Customer, bool]:
    """
    Find-or-create by phone and commit. Returns (customer, created).

    Two concurrent requests for the same phone collide on the (shop, phone)
    unique constraint, as do two first customers allocating the shop's code
    sequence; the retry then returns the row the winner committed.
    """
    def _op() -> tuple[Customer, bool]:
        customer, created = find_or_create_customer(
            shop_id,
            name=payload.get("name"),
            phone=payload.get("phone"),
            address=payload.get("address"),
            user_id=user_id,
        )
        db.session.commit()
        return customer, created

    return run_with_retry(_op, retry_on=RETRYABLE_ERRORS + (IntegrityError,))


def get_customer_profile(shop_id: int, customer_id) -> dict:
    """Customer with aggregates plus full purchase history, newest first."""
    customer = get_owned_or_404(Customer, customer_id, shop_id, label="Customer")
    sales = (
        scoped_query(Sale, shop_id)
        .filter(Sale.customer_id == customer.id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    profile = _with_aggregates(shop_id, [customer])[0]
    return {"customer": profile, "sales": [sale.to_dict() for sale in sales]}


def customers_with_dues(shop_id: int) -> list[dict]:
    """Customers whose recorded sales still carry an outstanding balance."""
    due_ids = (
        db.session.query(Sale.customer_id)
        .filter(Sale.shop_id == shop_id, Sale.customer_id.isnot(None), Sale.due > 0)
        .distinct()
    )
    customers = (
        scoped_query(Customer, shop_id)
        .filter(Customer.id.in_(due_ids))
        .order_by(Customer.name.asc())
        .all()
    )
    rows = _with_aggregates(shop_id, customers)
    return sorted(rows, key=lambda row: row["total_due"], reverse=True)
