from __future__ import annotations

from ..extensions import db
from pharmatrack.money import as_float
from pharmatrack.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Recorded sale (immutable once created).

    WHY: A sale is the source of truth for revenue and customer history.
    The only fields that change afterwards are paid/due, and only through
    credit_service when a payment is recorded against the linked Credit.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "invoice_number", name="uq_sales_shop_invoice"),
        db.UniqueConstraint("shop_id", "idempotency_key", name="uq_sales_shop_idempotency_key"),
        db.Index("ix_sales_shop_created", "shop_id", "created_at"),
        db.Index("ix_sales_shop_customer", "shop_id", "customer_id"),
        db.Index("ix_sales_shop_due", "shop_id", "due"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    # Human-readable invoice number, e.g. "INV-000042"
    invoice_number = db.Column(db.String(64), nullable=False)

    # Client-supplied key that makes retried submissions safe
    idempotency_key = db.Column(db.String(128), nullable=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    final_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    due = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    shop = db.relationship("Shop", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        order_by="SaleItem.line_no",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer": (
                {"id": self.customer.id, "name": self.customer.name, "phone": self.customer.phone}
                if self.customer else None
            ),
            "invoice_number": self.invoice_number,
            "subtotal": as_float(self.subtotal),
            "gst": as_float(self.gst),
            "discount": as_float(self.discount),
            "final_total": as_float(self.final_total),
            "paid": as_float(self.paid),
            "due": as_float(self.due),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    Line item on a sale.

    name and price are snapshots taken when the sale was recorded; editing or
    repricing the Medicine later never rewrites history.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_no", name="uq_sale_items_sale_line"),
        db.CheckConstraint("qty >= 1", name="ck_sale_items_qty_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False)
    line_no = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    item_discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "medicine_id": self.medicine_id,
            "name": self.name,
            "qty": self.qty,
            "price": as_float(self.price),
            "item_discount_percent": as_float(self.item_discount_percent),
            "line_total": as_float(self.line_total),
        }


class Credit(db.Model):
    """
    Unpaid balance tied 1:1 to a sale.

    INVARIANT: status == "paid" exactly when due <= 0. Every write path calls
    recompute_status() after touching paid/due, and the CHECK constraint
    rejects anything else at the storage layer.
    """
    __tablename__ = "credits"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_credits_sale"),
        db.UniqueConstraint("shop_id", "sale_id", name="uq_credits_shop_sale"),
        db.CheckConstraint(
            "(due <= 0 AND status = 'paid') OR (due > 0 AND status = 'pending')",
            name="ck_credits_status_matches_due",
        ),
        db.Index("ix_credits_shop_customer", "shop_id", "customer_id"),
        db.Index("ix_credits_shop_status", "shop_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False)

    phone = db.Column(db.String(32), nullable=False, default="")
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    due = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer", backref=db.backref("credits", lazy=True))
    sale = db.relationship("Sale", backref=db.backref("credit", uselist=False, lazy=True))

    def recompute_status(self) -> None:
        self.status = "paid" if (self.due or 0) <= 0 else "pending"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer": (
                {"id": self.customer.id, "name": self.customer.name, "phone": self.customer.phone}
                if self.customer else None
            ),
            "sale_id": self.sale_id,
            "invoice_number": self.sale.invoice_number if self.sale else None,
            "medicines": [item.name for item in self.sale.items] if self.sale else [],
            "phone": self.phone,
            "total_amount": as_float(self.total_amount),
            "paid": as_float(self.paid),
            "due": as_float(self.due),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
