"""
Login Throttling Service

WHY: Prevent brute-force password attacks by limiting failed login attempts.
After too many failures, the username is temporarily locked.

SECURITY FEATURES:
- Tracks failed attempts per username
- Lockout after LOGIN_MAX_FAILED_ATTEMPTS failures within LOCKOUT_WINDOW
- Lockout duration: LOCKOUT_DURATION minutes after the latest failure
- Uses security_events table for tracking
"""

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SecurityEvent, User
from pharmatrack.time_utils import utcnow


LOCKOUT_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=15)


def _max_failed_attempts() -> int:
    return current_app.config.get("LOGIN_MAX_FAILED_ATTEMPTS", 10)


def get_recent_failed_attempts(identifier: str) -> int:
    """
    Count recent failed login attempts for a username.

    The username is stored in the 'action' field of LOGIN_FAILED events.
    """
    cutoff = utcnow() - LOCKOUT_WINDOW
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == identifier,
        SecurityEvent.occurred_at >= cutoff,
    ).count()


def is_account_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    if get_recent_failed_attempts(identifier) < _max_failed_attempts():
        return False, None

    most_recent = db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == identifier,
    ).order_by(SecurityEvent.occurred_at.desc()).first()

    if most_recent:
        lockout_end = most_recent.occurred_at + LOCKOUT_DURATION
        now = utcnow()
        if now < lockout_end:
            return True, int((lockout_end - now).total_seconds())

    return False, None


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
) -> int:
    """Record a failed login attempt. Returns the recent failure count."""
    user = db.session.query(User).filter(User.username == identifier).first()

    event = SecurityEvent(
        user_id=user.id if user else None,
        shop_id=user.shop_id if user else None,
        event_type="LOGIN_FAILED",
        resource="/api/auth/login",
        action=identifier,
        success=False,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()

    count = get_recent_failed_attempts(identifier)
    if count >= _max_failed_attempts():
        current_app.logger.warning("Login locked for %r after %s failures", identifier, count)
    return count


def record_successful_login(
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Record a successful login (no commit).

    Old failures are not cleared; they age out of LOCKOUT_WINDOW.
    """
    db.session.add(SecurityEvent(
        user_id=user.id,
        shop_id=user.shop_id,
        event_type="LOGIN_SUCCESS",
        resource="/api/auth/login",
        action=user.username,
        success=True,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    ))
