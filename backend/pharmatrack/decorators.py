# Overview: Request gate decorators: token verification, tenant binding, subscription and permission checks.

from functools import wraps

from flask import current_app, g, request

from .errors import AuthError, ForbiddenError, SubscriptionError
from .services import auth_service, permission_service, subscription_service, token_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "role")


def _bearer_token() -> str:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Authentication required")
    return token.strip()


def require_auth(f):
    """
    Require a valid credential and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.current_user_id / g.role: identity of the live user record
    - g.shop_id: The tenant, which must match the token (None for superadmin)

    SECURITY: Raises AuthError (401) if:
    - No Authorization header
    - Invalid or expired token
    - User account deleted or deactivated
    - Token missing shop_id for a non-superadmin role
    - Role or shop changed since the token was issued
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = token_service.decode_token(_bearer_token())
        user = auth_service.get_active_user(claims.user_id)

        if claims.shop_id is None and claims.role != "superadmin":
            permission_service.log_security_event(
                user_id=claims.user_id,
                event_type="TENANT_CONTEXT_MISSING",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Token missing shop_id for non-superadmin role",
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            raise AuthError("Invalid session: missing shop context")

        # A role change or shop move since login invalidates the credential
        if user.role != claims.role or user.shop_id != claims.shop_id:
            raise AuthError("Session no longer valid. Please login again.")

        g.current_user = user
        g.current_user_id = user.id
        g.shop_id = user.shop_id
        g.role = user.role

        return f(*args, **kwargs)

    return decorated_function


def require_subscription(f):
    """
    Block tenant business routes unless the shop's subscription allows service.

    Superadmin bypasses. A lapsed trial or plan is persisted as expired before
    the SubscriptionError (403) is raised.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            raise AuthError("Authentication required")

        if g.role != "superadmin":
            if g.shop_id is None:
                raise AuthError("Invalid session: missing shop context")
            try:
                subscription_service.require_active_subscription(g.shop_id)
            except SubscriptionError as exc:
                current_app.logger.info(
                    "Subscription gate blocked shop %s (%s) on %s %s",
                    g.shop_id, exc.subscription_status, request.method, request.path,
                )
                raise

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission for the caller's role.

    MULTI-TENANT: Denials are logged with shop_id for tenant-scoped auditing.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise AuthError("Authentication required")

            permission_service.require_permission(
                role=g.role,
                permission_code=permission_code,
                user_id=g.current_user_id,
                shop_id=g.shop_id,
                resource=request.path,
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_superadmin(f):
    """Require the authenticated user to be a platform superadmin."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            raise AuthError("Authentication required")
        if g.role != "superadmin":
            raise ForbiddenError("Superadmin access required")
        return f(*args, **kwargs)
    return decorated_function
