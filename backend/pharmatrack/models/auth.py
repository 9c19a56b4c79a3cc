from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z


ROLES = ("superadmin", "admin", "staff")


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: Users belong to exactly one shop (shop_id). Only the
    superadmin role may have no shop. Usernames are unique across the whole
    system because login is by username alone.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('superadmin', 'admin', 'staff')", name="ck_users_role"),
        db.CheckConstraint("shop_id IS NOT NULL OR role = 'superadmin'", name="ck_users_shop_required"),
        db.Index("ix_users_shop_role", "shop_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=True, index=True)

    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="staff")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("users", lazy=True))

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "username": self.username,
            "role": self.role,
            "is_active": self.is_active,
            "last_login": to_utc_z(self.last_login),
            "created_at": to_utc_z(self.created_at),
        }
