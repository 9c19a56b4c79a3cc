from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data for a shop.

    MULTI-TENANT: Phone and customer_id are unique per shop, not globally, so
    two pharmacies can both have a customer with the same phone number.

    Purchase totals are NOT stored here; customer_service derives them from
    the shop's sales every time they are read.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "phone", name="uq_customers_shop_phone"),
        db.UniqueConstraint("shop_id", "customer_id", name="uq_customers_shop_customer_id"),
        db.Index("ix_customers_shop_name", "shop_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    address = db.Column(db.String(255), nullable=False, default="")

    # Human-readable identifier, e.g. "CUST-0001"
    customer_id = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
        }
