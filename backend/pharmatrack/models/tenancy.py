from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z


SUBSCRIPTION_TYPES = ("trial", "monthly", "quarterly", "halfYearly", "yearly")
SUBSCRIPTION_STATUSES = ("trial", "active", "expired", "inactive", "suspended")


class Shop(db.Model):
    """
    Multi-tenant root: every tenant is a Shop (one pharmacy business).

    WHY: Enables shared-database multi-tenancy with strict isolation.
    Users, customers, medicines, sales, credits and settings all belong to
    exactly one shop through a non-nullable shop_id.

    LIFECYCLE:
    - subscription_status is corrected lazily on read by
      subscription_service.evaluate_subscription; nothing sweeps it in the
      background, so a stored "trial" may be stale until the next request.
    - Shops are never hard-deleted; they are suspended or deactivated.
    """
    __tablename__ = "shops"
    __table_args__ = (
        db.CheckConstraint(
            "subscription_status IN ('trial', 'active', 'expired', 'inactive', 'suspended')",
            name="ck_shops_subscription_status",
        ),
        db.Index("ix_shops_subscription_status", "subscription_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_name = db.Column(db.String(255), nullable=False)
    owner_name = db.Column(db.String(255), nullable=True)
    owner_email = db.Column(db.String(255), nullable=True, unique=True)
    phone = db.Column(db.String(32), nullable=True)

    subscription_type = db.Column(db.String(16), nullable=True, default="trial")
    subscription_status = db.Column(db.String(16), nullable=False, default="trial")
    trial_ends_at = db.Column(db.DateTime, nullable=True)
    subscription_expires_at = db.Column(db.DateTime, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.shop_name!r} status={self.subscription_status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_name": self.shop_name,
            "owner_name": self.owner_name,
            "owner_email": self.owner_email,
            "phone": self.phone,
            "subscription_type": self.subscription_type,
            "subscription_status": self.subscription_status,
            "trial_ends_at": to_utc_z(self.trial_ends_at),
            "subscription_expires_at": to_utc_z(self.subscription_expires_at),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
