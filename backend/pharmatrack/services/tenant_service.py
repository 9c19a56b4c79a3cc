"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every request is scoped to a tenant (shop), and cross-tenant access must be
explicitly denied.

SECURITY INVARIANTS:
1. Every authenticated tenant request has g.shop_id set (from the token only)
2. IDs from client input are resolved with shop_id in the same WHERE clause
3. A record owned by another shop is reported as "not found", never forbidden
4. Cross-tenant access attempts are logged as security events

USAGE:
    from pharmatrack.services.tenant_service import get_current_shop_id, get_owned_or_404

    shop_id = get_current_shop_id()
    medicine = get_owned_or_404(Medicine, medicine_id, shop_id, label="Medicine")
"""

from flask import g, has_request_context, request

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from .permission_service import log_security_event


def get_current_shop_id() -> int:
    """
    Get current tenant's shop_id from Flask g context.

    A superadmin authenticates without a shop, so tenant routes reject it here
    instead of silently querying across every shop.
    """
    shop_id = getattr(g, "shop_id", None)
    if shop_id is None:
        raise ValidationError("Shop context missing")
    return shop_id


def get_current_user_id() -> int | None:
    return getattr(g, "current_user_id", None)


def scoped_query(model, shop_id: int):
    """Query for model rows belonging to shop_id only."""
    return db.session.query(model).filter(model.shop_id == shop_id)


def get_owned_or_404(model, record_id, shop_id: int, label: str | None = None):
    """
    Load a tenant-owned row by primary key, scoped to shop_id.

    Raises NotFoundError when the row is missing OR belongs to another shop;
    the second case is logged as CROSS_TENANT_ACCESS_DENIED.
    """
    label = label or model.__name__
    try:
        record_id = int(record_id)
    except (TypeError, ValueError):
        raise NotFoundError(f"{label} not found")

    record = scoped_query(model, shop_id).filter(model.id == record_id).first()
    if record is not None:
        return record

    owner_shop_id = (
        db.session.query(model.shop_id).filter(model.id == record_id).scalar()
    )
    if owner_shop_id is not None:
        _log_cross_tenant_attempt(
            f"{label} {record_id} belongs to shop {owner_shop_id}, not {shop_id}",
            shop_id=shop_id,
        )
    # Don't reveal it exists in another shop
    raise NotFoundError(f"{label} not found")


def escape_like(text: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return (
        text.replace(escape_char, escape_char * 2)
        .replace("%", escape_char + "%")
        .replace("_", escape_char + "_")
    )


def _log_cross_tenant_attempt(reason: str, shop_id: int | None) -> None:
    """
    Log a cross-tenant access attempt as a security event.

    Committed immediately so the audit row survives the request's rollback.
    """
    resource = action = ip_address = user_agent = None
    if has_request_context():
        resource = request.path
        action = request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    log_security_event(
        user_id=get_current_user_id() if has_request_context() else None,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        shop_id=shop_id,
    )
