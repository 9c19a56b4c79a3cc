# Overview: Signup, login and shop user management; bcrypt hashing.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable. Uses bcrypt for password hashing and
issues signed credentials that carry the tenant (shop_id) for the request gate.

MULTI-TENANT: Users belong to exactly one shop. Signup creates the shop and
its first user (admin) together. Usernames are unique system-wide because
login is by username alone.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS)
- Login failures never reveal whether the username exists
- Repeated failures lock the username (see login_throttle_service.py)
- Credentials are stateless; logout is acknowledged client-side only
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    SubscriptionError,
    TooManyAttemptsError,
    ValidationError,
)
from ..models import Setting, Shop, User
from . import activity_service, login_throttle_service, subscription_service, token_service
from .tenant_service import get_owned_or_404
from pharmatrack.time_utils import utcnow


MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
SHOP_ROLES = ("admin", "staff")


def validate_credentials_input(username, password) -> tuple[str, str]:
    if not isinstance(username, str) or not isinstance(password, str):
        raise ValidationError("Username and password required")
    username = username.strip()
    if not username or not password:
        raise ValidationError("Username and password required")
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return username, password


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _ensure_username_free(username: str) -> None:
    if db.session.query(User.id).filter(User.username == username).first():
        raise ConflictError("Username already exists")


def _token_for(user: User) -> str:
    return token_service.issue_token(user_id=user.id, shop_id=user.shop_id, role=user.role)


def signup(
    username,
    password,
    *,
    shop_name: str | None = None,
    owner_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> dict:
    """
    Create a shop and its admin user, then sign a credential for that admin.

    The shop starts in a trial window, or "inactive" when
    SIGNUP_REQUIRES_TRIAL_ACTIVATION is on.
    """
    username, password = validate_credentials_input(username, password)
    _ensure_username_free(username)

    email = email.strip().lower() if isinstance(email, str) and email.strip() else None
    if email and db.session.query(Shop.id).filter(Shop.owner_email == email).first():
        raise ConflictError("Email already registered")

    shop_name = (shop_name or "").strip() or f"{username}'s Pharmacy"
    shop = Shop(
        shop_name=shop_name,
        owner_name=(owner_name or "").strip() or username,
        owner_email=email,
        phone=(phone or "").strip() or None,
        is_active=True,
    )
    if current_app.config.get("SIGNUP_REQUIRES_TRIAL_ACTIVATION"):
        shop.subscription_type = "trial"
        shop.subscription_status = "inactive"
    else:
        subscription_service.initialize_trial(shop)
    db.session.add(shop)
    db.session.flush()

    user = User(
        shop_id=shop.id,
        username=username,
        password_hash=hash_password(password),
        role="admin",
        is_active=True,
    )
    db.session.add(user)
    db.session.add(Setting(shop_id=shop.id, store_name=shop_name, owner_name=shop.owner_name))

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists")

    current_app.logger.info("Signup: shop %s created with admin user %s", shop.id, user.id)
    return {
        "token": _token_for(user),
        "user": user.to_dict(),
        "shop": shop.to_dict(),
        "subscription": subscription_service.get_subscription_details(shop),
    }


def login(username, password, *, ip_address: str | None = None, user_agent: str | None = None) -> dict:
    """
    Authenticate and return {token, user, subscription}.

    An inactive shop may log in so it can activate its trial; expired,
    suspended and deactivated shops are refused with SubscriptionError.
    """
    if not isinstance(username, str) or not isinstance(password, str) or not username.strip() or not password:
        raise ValidationError("Username and password required")
    username = username.strip()

    locked, seconds_remaining = login_throttle_service.is_account_locked(username)
    if locked:
        raise TooManyAttemptsError(
            "Too many failed login attempts. Try again later.",
            details={"retry_after_seconds": seconds_remaining},
        )

    user = db.session.query(User).filter(User.username == username).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        login_throttle_service.record_failed_attempt(
            username, ip_address=ip_address, user_agent=user_agent,
        )
        raise AuthError("Invalid credentials")

    subscription = None
    if not user.is_superadmin:
        shop = user.shop
        if shop is None:
            raise SubscriptionError(
                subscription_service.BLOCKED_MESSAGES["unknown"], status="unknown",
            )
        decision = subscription_service.refresh_shop_status(shop)
        if not decision.allowed and decision.status != "inactive":
            raise SubscriptionError(decision.message, status=decision.status)
        subscription = subscription_service.get_subscription_details(shop)

    user.last_login = utcnow()
    login_throttle_service.record_successful_login(user, ip_address=ip_address, user_agent=user_agent)
    if user.shop_id is not None:
        activity_service.log_activity(
            shop_id=user.shop_id,
            user_id=user.id,
            action="user_login",
            entity_type="user",
            entity_id=user.id,
            description=f"{user.username} logged in",
        )
    db.session.commit()

    return {
        "token": _token_for(user),
        "user": user.to_dict(),
        "subscription": subscription,
    }


def get_active_user(user_id: int) -> User:
    """Resolve the token's user; a deleted or deactivated account is a 401."""
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthError("Account not found or deactivated")
    return user


# =============================================================================
# Shop user management (admin only)
# =============================================================================

def list_users(shop_id: int) -> list[User]:
    return (
        db.session.query(User)
        .filter(User.shop_id == shop_id)
        .order_by(User.username)
        .all()
    )


def create_user(shop_id: int, username, password, role: str = "staff", *, acting_user_id: int | None = None) -> User:
    username, password = validate_credentials_input(username, password)
    if role not in SHOP_ROLES:
        raise ValidationError("Invalid role", details={"allowed_roles": list(SHOP_ROLES)})
    _ensure_username_free(username)

    user = User(
        shop_id=shop_id,
        username=username,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=acting_user_id,
        action="create_user",
        entity_type="user",
        entity_id=user.id,
        description=f"Created {role} user {username}",
    )
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists")
    return user


def update_user(
    shop_id: int,
    user_id,
    *,
    role: str | None = None,
    is_active: bool | None = None,
    acting_user_id: int | None = None,
) -> User:
    user = get_owned_or_404(User, user_id, shop_id, label="User")

    if role is not None:
        if role not in SHOP_ROLES:
            raise ValidationError("Invalid role", details={"allowed_roles": list(SHOP_ROLES)})
        if user.id == acting_user_id and role != user.role:
            raise ForbiddenError("You cannot change your own role")
        user.role = role

    if is_active is not None:
        if not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")
        if user.id == acting_user_id and not is_active:
            raise ForbiddenError("You cannot deactivate your own account")
        user.is_active = is_active

    activity_service.log_activity(
        shop_id=shop_id,
        user_id=acting_user_id,
        action="update_user",
        entity_type="user",
        entity_id=user.id,
        description=f"Updated user {user.username}",
    )
    db.session.commit()
    return user


def create_superadmin(username, password) -> User:
    username, password = validate_credentials_input(username, password)
    _ensure_username_free(username)
    user = User(
        shop_id=None,
        username=username,
        password_hash=hash_password(password),
        role="superadmin",
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user
