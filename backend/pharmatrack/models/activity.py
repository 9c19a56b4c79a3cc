from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z, utcnow


ACTIVITY_ACTIONS = (
    "create_customer",
    "create_medicine",
    "update_medicine",
    "restock_medicine",
    "create_sale",
    "update_credit",
    "update_settings",
    "user_login",
    "create_user",
    "update_user",
    "subscription_change",
    "export_data",
)


class ActivityLog(db.Model):
    """Business activity trail shown to shop admins (not a security log)."""
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_shop_created", "shop_id", "created_at"),
        db.Index("ix_activity_logs_shop_action", "shop_id", "action"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    action = db.Column(db.String(32), nullable=False)
    entity_type = db.Column(db.String(32), nullable=True)
    entity_id = db.Column(db.Integer, nullable=True)
    description = db.Column(db.String(512), nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }
