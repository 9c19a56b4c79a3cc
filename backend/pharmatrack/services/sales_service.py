"""
Sales Service: atomic, idempotent sale recording

WHY: A sale touches stock, the sale document and (for unpaid balances) a
credit record. Either all of those land together or none of them do.

CRITICAL SECTION (one transaction):
1. Replay check on the client's idempotency key
2. Read-only validation: customer and medicines are resolved within the shop
3. Conditional stock decrements (UPDATE ... WHERE stock >= qty)
4. Sale + line items insert
5. Credit upsert keyed by (shop_id, sale_id) when due > 0

Any failure rolls the whole unit back.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import AppError, InsufficientStockError, ValidationError
from ..models import Credit, Customer, Medicine, Sale, SaleItem
from ..money import MAX_AMOUNT, ZERO, quantize, to_money
from . import activity_service, customer_service, document_service, medicine_service, settings_service
from .concurrency import RETRYABLE_ERRORS, run_with_retry
from .tenant_service import get_owned_or_404, scoped_query


MAX_IDEMPOTENCY_KEY_LENGTH = 128
HUNDRED = Decimal("100")


def _parse_qty(value, index: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"items[{index}].qty must be a whole number")
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"items[{index}].qty must be a whole number")
    if qty < 1:
        raise ValidationError(f"items[{index}].qty must be at least 1")
    return qty


def _parse_items(raw_items) -> list[dict]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        medicine_id = raw.get("medicine_id", raw.get("medicine"))
        if medicine_id in (None, ""):
            raise ValidationError(f"items[{index}].medicine_id is required")

        discount = to_money(
            raw.get("item_discount_percent", raw.get("item_discount")),
            f"items[{index}].item_discount_percent",
        )
        if discount > HUNDRED:
            raise ValidationError(f"items[{index}].item_discount_percent cannot exceed 100")

        price = raw.get("price")
        items.append({
            "medicine_id": medicine_id,
            "qty": _parse_qty(raw.get("qty", raw.get("quantity")), index),
            "price": to_money(price, f"items[{index}].price") if price not in (None, "") else None,
            "item_discount_percent": discount,
        })
    return items


def normalize_idempotency_key(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("idempotency_key must be a string")
    key = value.strip()
    if not key:
        return None
    if len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise ValidationError("idempotency_key is too long")
    return key


def find_by_idempotency_key(shop_id: int, key: str) -> Sale | None:
    return scoped_query(Sale, shop_id).filter(Sale.idempotency_key == key).first()


def _resolve_customer(shop_id: int, payload: dict) -> tuple[Customer | None, dict | None]:
    """
    Returns (existing customer, inline customer fields).

    Only reads here; an inline walk-in customer is created later inside the
    write phase so a validation failure leaves nothing behind.
    """
    customer_id = payload.get("customer_id")
    if customer_id not in (None, ""):
        return get_owned_or_404(Customer, customer_id, shop_id, label="Customer"), None

    inline = payload.get("customer")
    if isinstance(inline, dict) and (inline.get("phone") or "").strip():
        return None, inline
    return None, None


def create_sale(
    shop_id: int,
    payload: dict,
    *,
    user_id: int | None = None,
    idempotency_key: str | None = None,
) -> tuple[Sale, bool]:
    """
    Record a sale. Returns (sale, created).

    A replayed idempotency key returns the sale recorded the first time with
    created=False and changes nothing. Two concurrent submissions with the same
    key collide on the unique constraint; the retry then finds the winner.
    """
    key = normalize_idempotency_key(idempotency_key)

    def _op() -> tuple[Sale, bool]:
        if key:
            existing = find_by_idempotency_key(shop_id, key)
            if existing:
                return existing, False

        try:
            sale = _record_sale(shop_id, payload, user_id=user_id, key=key)
        except AppError:
            db.session.rollback()
            raise
        db.session.commit()
        return sale, True

    sale, created = run_with_retry(_op, retry_on=RETRYABLE_ERRORS + (IntegrityError,))
    if created:
        current_app.logger.info(
            "Sale %s recorded for shop %s (final_total=%s due=%s)",
            sale.invoice_number, shop_id, sale.final_total, sale.due,
        )
    return sale, created


def _record_sale(shop_id: int, payload: dict, *, user_id: int | None, key: str | None) -> Sale:
    items = _parse_items(payload.get("items"))
    gst = to_money(payload.get("gst"), "gst")
    discount = to_money(payload.get("discount"), "discount")

    customer, inline_customer = _resolve_customer(shop_id, payload)

    # Resolve every medicine within the shop before anything is written
    medicines: dict[int, Medicine] = {}
    requested: dict[int, int] = {}
    for item in items:
        medicine = get_owned_or_404(Medicine, item["medicine_id"], shop_id, label="Medicine")
        medicines[medicine.id] = medicine
        item["medicine_id"] = medicine.id
        requested[medicine.id] = requested.get(medicine.id, 0) + item["qty"]

    for medicine_id, qty in requested.items():
        medicine = medicines[medicine_id]
        if medicine.stock < qty:
            raise InsufficientStockError(
                f"Insufficient stock for {medicine.name}",
                details={"medicine_id": medicine_id, "requested": qty, "available": medicine.stock},
            )

    subtotal = ZERO
    for item in items:
        medicine = medicines[item["medicine_id"]]
        price = item["price"] if item["price"] is not None else quantize(medicine.selling_price)
        gross = price * item["qty"]
        line_total = quantize(gross - gross * item["item_discount_percent"] / HUNDRED)
        item.update(name=medicine.name, price=price, line_total=line_total)
        subtotal += line_total

    final_total = max(ZERO, subtotal + gst - discount)
    if max(subtotal, final_total) >= MAX_AMOUNT:
        raise ValidationError("Sale total is too large")
    paid = to_money(payload["paid"], "paid") if payload.get("paid") not in (None, "") else final_total
    # Cash tendered beyond the total is change, not payment
    paid = min(paid, final_total)
    due = max(ZERO, final_total - paid)

    if due > 0 and customer is None and inline_customer is None:
        raise ValidationError("A customer is required for sales with an outstanding balance")

    # Write phase
    if inline_customer is not None:
        customer, _ = customer_service.find_or_create_customer(
            shop_id,
            name=inline_customer.get("name"),
            phone=inline_customer.get("phone"),
            address=inline_customer.get("address"),
            user_id=user_id,
        )

    for item in items:
        if not medicine_service.decrement_stock(shop_id, item["medicine_id"], item["qty"]):
            medicine = medicines[item["medicine_id"]]
            raise InsufficientStockError(
                f"Insufficient stock for {medicine.name}",
                details={"medicine_id": medicine.id, "requested": item["qty"]},
            )

    prefix = settings_service.get_settings(shop_id, commit=False).invoice_prefix
    sale = Sale(
        shop_id=shop_id,
        customer_id=customer.id if customer else None,
        invoice_number=document_service.next_invoice_number(shop_id, prefix),
        idempotency_key=key,
        subtotal=subtotal,
        gst=gst,
        discount=discount,
        final_total=final_total,
        paid=paid,
        due=due,
        created_by_user_id=user_id,
    )
    for line_no, item in enumerate(items, start=1):
        sale.items.append(SaleItem(
            shop_id=shop_id,
            medicine_id=item["medicine_id"],
            line_no=line_no,
            name=item["name"],
            qty=item["qty"],
            price=item["price"],
            item_discount_percent=item["item_discount_percent"],
            line_total=item["line_total"],
        ))
    db.session.add(sale)
    db.session.flush()

    if due > 0:
        _upsert_credit(sale, customer)

    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="create_sale",
        entity_type="sale",
        entity_id=sale.id,
        description=f"Sale {sale.invoice_number} for {final_total}",
    )
    for medicine in medicines.values():
        db.session.expire(medicine)
    return sale


def _upsert_credit(sale: Sale, customer: Customer) -> Credit:
    credit = (
        db.session.query(Credit)
        .filter(Credit.shop_id == sale.shop_id, Credit.sale_id == sale.id)
        .first()
    )
    if credit is None:
        credit = Credit(shop_id=sale.shop_id, sale_id=sale.id)
        db.session.add(credit)
    credit.customer_id = customer.id
    credit.phone = customer.phone
    credit.total_amount = sale.final_total
    credit.paid = sale.paid
    credit.due = sale.due
    credit.recompute_status()
    db.session.flush()
    return credit


def list_sales(shop_id: int, *, customer_id=None, limit: int = 50, offset: int = 0) -> dict:
    query = scoped_query(Sale, shop_id)
    if customer_id not in (None, ""):
        customer = get_owned_or_404(Customer, customer_id, shop_id, label="Customer")
        query = query.filter(Sale.customer_id == customer.id)

    total = query.count()
    sales = (
        query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return {
        "items": [sale.to_dict(include_items=False) for sale in sales],
        "count": total,
        "limit": limit,
        "offset": offset,
    }


def get_sale(shop_id: int, sale_id) -> Sale:
    return get_owned_or_404(Sale, sale_id, shop_id, label="Sale")
