# Overview: Capability checks and security event logging with shop context.

"""
Permission Checking and Security Event Logging with Multi-Tenant Support

WHY: Enforce role-based access control and create an audit trail.
Denials are logged; grants are not.

DESIGN PRINCIPLES:
- Fail closed: unknown roles hold no permissions
- One policy table (permissions.DEFAULT_ROLE_PERMISSIONS) keyed by role
- Events carry shop_id so they can be filtered per tenant
"""

from ..extensions import db
from ..errors import ForbiddenError
from ..models import SecurityEvent
from ..permissions import get_role_permissions, role_has_permission
from pharmatrack.time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    shop_id: int | None = None,
    commit: bool = True,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - LOGIN_FAILED / LOGIN_SUCCESS
    - PERMISSION_DENIED
    - TENANT_CONTEXT_MISSING
    - CROSS_TENANT_ACCESS_DENIED
    - SUBSCRIPTION_BLOCKED
    """
    event = SecurityEvent(
        user_id=user_id,
        shop_id=shop_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    if commit:
        db.session.commit()
    return event


def get_user_permissions(role: str) -> set[str]:
    return get_role_permissions(role)


def require_permission(
    *,
    role: str,
    permission_code: str,
    user_id: int | None = None,
    shop_id: int | None = None,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Raise ForbiddenError unless the role holds permission_code.

    Denials are written to security_events before raising.
    """
    if role_has_permission(role, permission_code):
        return

    log_security_event(
        user_id=user_id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=permission_code,
        reason=f"Role {role!r} lacks {permission_code}",
        ip_address=ip_address,
        user_agent=user_agent,
        shop_id=shop_id,
    )
    raise ForbiddenError(
        "Permission denied",
        details={"required_permission": permission_code},
    )
