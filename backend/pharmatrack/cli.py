# Overview: Flask CLI command groups for bootstrap, shop administration, and maintenance.

# backend/pharmatrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shop administration:
# - python -m flask shops list [--status trial]
#   List shops with their corrected subscription status.
# - python -m flask shops suspend 3
#   Suspend a shop (terminal; blocks every request for that shop).
# - python -m flask shops upgrade 3 monthly
#   Put a shop on a paid plan starting now.
#
# Users:
# - python -m flask users create-superadmin --username root --password "secret123"
#   Create a platform superadmin (no shop).
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

from datetime import timedelta

import click
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import SUBSCRIPTION_STATUSES, SecurityEvent
from .services import auth_service, shop_service, subscription_service
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("OK  Database schema ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("OK  Database reset complete")


@click.group('shops')
def shops_group():
    """Shop (tenant) administration."""


@shops_group.command('list')
@click.option('--status', type=click.Choice(SUBSCRIPTION_STATUSES), default=None)
@with_appcontext
def list_shops(status):
    shops = shop_service.list_shops(status=status)
    if not shops:
        click.echo("No shops found")
        return
    for shop in shops:
        snapshot = shop["subscription"]
        click.echo(
            f"{shop['id']:>4}  {shop['shop_name']:<30}  {shop['subscription_status']:<10}"
            f"  {shop['subscription_type'] or '-':<10}  users={shop['user_count']}"
            f"  days_remaining={snapshot['days_remaining']}"
        )


@shops_group.command('suspend')
@click.argument('shop_id', type=int)
@with_appcontext
def suspend_shop(shop_id):
    try:
        shop = subscription_service.suspend_shop(shop_id)
    except AppError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"OK  Shop {shop.id} ({shop.shop_name}) suspended")


@shops_group.command('upgrade')
@click.argument('shop_id', type=int)
@click.argument('plan_type', type=click.Choice(list(subscription_service.PRICING)))
@with_appcontext
def upgrade_shop(shop_id, plan_type):
    try:
        shop_service.get_shop_or_404(shop_id)
        shop = subscription_service.upgrade_subscription(shop_id, plan_type)
    except AppError as exc:
        raise click.ClickException(exc.message)
    click.echo(
        f"OK  Shop {shop.id} on {plan_type} until {shop.subscription_expires_at:%Y-%m-%d}"
    )


@click.group('users')
def users_group():
    """User bootstrap commands."""


@users_group.command('create-superadmin')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_superadmin(username, password):
    try:
        user = auth_service.create_superadmin(username, password)
    except AppError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"OK  Superadmin {user.username} created (id={user.id})")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = (
        db.session.query(SecurityEvent)
        .filter(SecurityEvent.occurred_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
