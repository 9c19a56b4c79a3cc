# Overview: Flask API routes for signup, login and logout.

"""
Authentication API routes

SECURITY FEATURES:
- Generic "Invalid credentials" on any login failure
- Login throttling with temporary lockout (429)
- Subscription check at login for shop users
- Stateless credentials: logout is acknowledged, not recorded
"""

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..responses import json_body, ok
from ..services import auth_service, permission_service, subscription_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    """Create a shop plus its admin user and return a credential."""
    data = json_body()
    result = auth_service.signup(
        data.get("username"),
        data.get("password"),
        shop_name=data.get("shop_name"),
        owner_name=data.get("owner_name"),
        email=data.get("email"),
        phone=data.get("phone"),
    )
    return ok(result, message="Account created", status=201)


@auth_bp.post("/login")
def login_route():
    data = json_body()
    result = auth_service.login(
        data.get("username"),
        data.get("password"),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return ok(result, message="Login successful")


@auth_bp.post("/logout")
def logout_route():
    return ok(message="Logged out")


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    subscription = None
    if g.shop_id is not None:
        shop = subscription_service.get_shop_or_401(g.shop_id)
        subscription = subscription_service.get_subscription_details(shop)
    return ok({
        "user": user.to_dict(),
        "permissions": sorted(permission_service.get_user_permissions(user.role)),
        "subscription": subscription,
    })
