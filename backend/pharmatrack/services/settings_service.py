# Overview: Per-shop store profile, created lazily on first read or write.

from __future__ import annotations

import re

from ..extensions import db
from ..errors import ValidationError
from ..models import DEFAULT_STORE_NAME, Setting, Shop
from . import activity_service


EDITABLE_FIELDS = {
    "store_name": 255,
    "owner_name": 255,
    "shop_address": 512,
    "phone_number": 32,
    "whatsapp_number": 32,
    "gst_number": 32,
    "invoice_prefix": 16,
    "currency": 8,
}
INVOICE_PREFIX_RE = re.compile(r"^[A-Za-z0-9]+$")


def get_settings(shop_id: int, *, commit: bool = True) -> Setting:
    setting = db.session.query(Setting).filter(Setting.shop_id == shop_id).first()
    if setting:
        return setting

    shop = db.session.get(Shop, shop_id)
    setting = Setting(
        shop_id=shop_id,
        store_name=(shop.shop_name if shop else None) or DEFAULT_STORE_NAME,
        owner_name=(shop.owner_name if shop else None) or "",
    )
    db.session.add(setting)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return setting


def update_settings(shop_id: int, payload: dict, user_id: int | None = None) -> Setting:
    """Partial update: only the fields present in payload change."""
    setting = get_settings(shop_id, commit=False)

    for field, max_length in EDITABLE_FIELDS.items():
        if field not in payload:
            continue
        value = payload[field]
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")
        value = value.strip()
        if len(value) > max_length:
            raise ValidationError(f"{field} is too long")
        if field in ("store_name", "invoice_prefix", "currency") and not value:
            raise ValidationError(f"{field} cannot be empty")
        if field == "invoice_prefix" and not INVOICE_PREFIX_RE.match(value):
            raise ValidationError("invoice_prefix may only contain letters and digits")
        setattr(setting, field, value)

    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="update_settings",
        entity_type="settings",
        entity_id=setting.id,
        description="Updated store settings",
    )
    db.session.commit()
    return setting
