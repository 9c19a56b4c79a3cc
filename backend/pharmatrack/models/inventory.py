from __future__ import annotations

from ..extensions import db
from pharmatrack.money import as_float
from pharmatrack.time_utils import to_utc_z


class Medicine(db.Model):
    """
    Catalog item with on-hand stock for one shop.

    Every shop keeps its own catalog, even when names coincide.
    Stock can never go negative: sale_service decrements it with a
    conditional UPDATE and the CHECK constraint backs that up in storage.
    """
    __tablename__ = "medicines"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_medicines_stock_non_negative"),
        db.CheckConstraint("mrp >= 0 AND selling_price >= 0", name="ck_medicines_prices_non_negative"),
        db.Index("ix_medicines_shop_name", "shop_id", "name"),
        db.Index("ix_medicines_shop_stock", "shop_id", "stock"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    mrp = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    expiry = db.Column(db.String(32), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("medicines", lazy=True))

    def __repr__(self) -> str:
        return f"<Medicine id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "mrp": as_float(self.mrp),
            "selling_price": as_float(self.selling_price),
            "stock": self.stock,
            "expiry": self.expiry,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
