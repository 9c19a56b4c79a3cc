# Overview: Flask API routes for the shop's store settings.

from flask import Blueprint, g

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok
from ..services import settings_service
from ..services.tenant_service import get_current_shop_id


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
@require_subscription
@require_permission("VIEW_SETTINGS")
def get_settings_route():
    return ok(settings_service.get_settings(get_current_shop_id()).to_dict())


@settings_bp.put("")
@require_auth
@require_subscription
@require_permission("MANAGE_SETTINGS")
def update_settings_route():
    setting = settings_service.update_settings(
        get_current_shop_id(), json_body(), user_id=g.current_user_id,
    )
    return ok(setting.to_dict(), message="Settings saved")
