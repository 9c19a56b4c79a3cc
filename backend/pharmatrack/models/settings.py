from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z


DEFAULT_STORE_NAME = "PharmaTrack Store"


class Setting(db.Model):
    """
    Per-shop store profile (invoice header, GST number, currency).

    One row per shop, created lazily by settings_service on first read/write.
    """
    __tablename__ = "settings"
    __table_args__ = (
        db.UniqueConstraint("shop_id", name="uq_settings_shop"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False)

    store_name = db.Column(db.String(255), nullable=False, default=DEFAULT_STORE_NAME)
    owner_name = db.Column(db.String(255), nullable=False, default="")
    shop_address = db.Column(db.String(512), nullable=False, default="")
    phone_number = db.Column(db.String(32), nullable=False, default="")
    whatsapp_number = db.Column(db.String(32), nullable=False, default="")
    gst_number = db.Column(db.String(32), nullable=False, default="")
    invoice_prefix = db.Column(db.String(16), nullable=False, default="INV")
    currency = db.Column(db.String(8), nullable=False, default="INR")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("setting", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "shop_id": self.shop_id,
            "store_name": self.store_name,
            "owner_name": self.owner_name,
            "shop_address": self.shop_address,
            "phone_number": self.phone_number,
            "whatsapp_number": self.whatsapp_number,
            "gst_number": self.gst_number,
            "invoice_prefix": self.invoice_prefix,
            "currency": self.currency,
            "updated_at": to_utc_z(self.updated_at),
        }
