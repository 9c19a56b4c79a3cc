# Overview: Shop-scoped medicine catalog and stock movements.

from __future__ import annotations

from sqlalchemy import func, update

from ..extensions import db
from ..errors import ValidationError
from ..models import Medicine
from ..money import to_money
from . import activity_service
from .tenant_service import escape_like, get_owned_or_404, scoped_query
from pharmatrack.time_utils import parse_expiry


def _parse_stock(value, field: str = "stock") -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be a whole number")
    if number < 0:
        raise ValidationError(f"{field} must be a non-negative number")
    return number


def _parse_expiry_text(value) -> str:
    if value is None or value == "":
        return ""
    if not isinstance(value, str) or parse_expiry(value) is None:
        raise ValidationError("expiry must be a date (YYYY-MM-DD or YYYY-MM)")
    return value.strip()


def _parse_name(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("name is required")
    name = value.strip()
    if len(name) > 255:
        raise ValidationError("name is too long")
    return name


def search_medicines(shop_id: int, q: str | None = None, limit: int = 200) -> list[Medicine]:
    query = scoped_query(Medicine, shop_id)
    q = (q or "").strip()
    if q:
        query = query.filter(func.lower(Medicine.name).like(f"%{escape_like(q.lower())}%", escape="\\"))
    return query.order_by(Medicine.name.asc(), Medicine.id.asc()).limit(limit).all()


def add_medicine(shop_id: int, payload: dict, user_id: int | None = None) -> tuple[Medicine, bool]:
    """
    Add a catalog item, or restock the existing one.

    A medicine with the same name (case-insensitive) and the same expiry in
    this shop is the same batch: its stock is incremented and its prices are
    replaced. Returns (medicine, created).
    """
    name = _parse_name(payload.get("name"))
    mrp = to_money(payload.get("mrp"), "mrp")
    selling_price = payload.get("selling_price", payload.get("price"))
    selling_price = to_money(selling_price, "selling_price") if selling_price not in (None, "") else mrp
    stock = _parse_stock(payload.get("stock"))
    expiry = _parse_expiry_text(payload.get("expiry"))

    existing = (
        scoped_query(Medicine, shop_id)
        .filter(func.lower(Medicine.name) == name.lower(), Medicine.expiry == expiry)
        .first()
    )
    if existing:
        db.session.execute(
            update(Medicine)
            .where(Medicine.id == existing.id, Medicine.shop_id == shop_id)
            .values(stock=Medicine.stock + stock, mrp=mrp, selling_price=selling_price)
            .execution_options(synchronize_session=False)
        )
        activity_service.log_activity(
            shop_id=shop_id,
            user_id=user_id,
            action="restock_medicine",
            entity_type="medicine",
            entity_id=existing.id,
            description=f"Added {stock} to {existing.name}",
        )
        db.session.commit()
        db.session.refresh(existing)
        return existing, False

    medicine = Medicine(
        shop_id=shop_id,
        name=name,
        mrp=mrp,
        selling_price=selling_price,
        stock=stock,
        expiry=expiry,
    )
    db.session.add(medicine)
    db.session.flush()
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="create_medicine",
        entity_type="medicine",
        entity_id=medicine.id,
        description=f"Added medicine {name}",
    )
    db.session.commit()
    return medicine, True


def update_medicine(shop_id: int, medicine_id, payload: dict, user_id: int | None = None) -> Medicine:
    """Edit catalog fields. Stock moves only through restock and sales."""
    medicine = get_owned_or_404(Medicine, medicine_id, shop_id, label="Medicine")

    if "name" in payload:
        medicine.name = _parse_name(payload["name"])
    if "mrp" in payload:
        medicine.mrp = to_money(payload["mrp"], "mrp")
    if "selling_price" in payload:
        medicine.selling_price = to_money(payload["selling_price"], "selling_price")
    if "expiry" in payload:
        medicine.expiry = _parse_expiry_text(payload["expiry"])

    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="update_medicine",
        entity_type="medicine",
        entity_id=medicine.id,
        description=f"Updated medicine {medicine.name}",
    )
    db.session.commit()
    return medicine


def restock_medicine(shop_id: int, medicine_id, add_stock, expiry=None, user_id: int | None = None) -> Medicine:
    """Increment stock atomically; optionally replace the expiry."""
    medicine = get_owned_or_404(Medicine, medicine_id, shop_id, label="Medicine")
    quantity = _parse_stock(add_stock, "add_stock")

    values = {"stock": Medicine.stock + quantity}
    if expiry not in (None, ""):
        values["expiry"] = _parse_expiry_text(expiry)

    db.session.execute(
        update(Medicine)
        .where(Medicine.id == medicine.id, Medicine.shop_id == shop_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="restock_medicine",
        entity_type="medicine",
        entity_id=medicine.id,
        description=f"Added {quantity} to {medicine.name}",
    )
    db.session.commit()
    db.session.refresh(medicine)
    return medicine


def decrement_stock(shop_id: int, medicine_id: int, quantity: int) -> bool:
    """
    Take `quantity` units off the shelf if and only if that many are on hand.

    A single conditional UPDATE, so concurrent sales of the same medicine
    serialize in the database and stock never goes below zero. Returns False
    when the floor check fails. Does not commit.
    """
    result = db.session.execute(
        update(Medicine)
        .where(
            Medicine.id == medicine_id,
            Medicine.shop_id == shop_id,
            Medicine.stock >= quantity,
        )
        .values(stock=Medicine.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
