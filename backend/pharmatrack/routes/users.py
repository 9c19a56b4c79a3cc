# Overview: Flask API routes for managing the users of one shop.

from flask import Blueprint, g

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok
from ..services import auth_service
from ..services.tenant_service import get_current_shop_id


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_subscription
@require_permission("MANAGE_USERS")
def list_users_route():
    users = auth_service.list_users(get_current_shop_id())
    return ok([user.to_dict() for user in users])


@users_bp.post("")
@require_auth
@require_subscription
@require_permission("MANAGE_USERS")
def create_user_route():
    """Create a user in the caller's shop. Role defaults to staff."""
    data = json_body()
    user = auth_service.create_user(
        get_current_shop_id(),
        data.get("username"),
        data.get("password"),
        role=data.get("role") or "staff",
        acting_user_id=g.current_user_id,
    )
    return ok(user.to_dict(), message="User created", status=201)


@users_bp.patch("/<int:user_id>")
@require_auth
@require_subscription
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    data = json_body()
    user = auth_service.update_user(
        get_current_shop_id(),
        user_id,
        role=data.get("role"),
        is_active=data.get("is_active"),
        acting_user_id=g.current_user_id,
    )
    return ok(user.to_dict(), message="User updated")
