# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/sms/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@sms.local]
#   Idempotent bootstrap: creates tables and a default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role Rep]
#   List staff users.
# - python -m flask users create --name "Ravi" --email ravi@sms.local --role Rep
#   Create a user (prompts if options are omitted).
#
# Stock inspection:
# - python -m flask products list [--low-stock]
#   List products with stock and threshold.
# - python -m flask alerts list [--limit 20]
#   List active low-stock alerts, newest first.

import click
from flask.cli import with_appcontext

from .errors import InventoryError
from .extensions import db
from .models import User, ROLES, ROLE_ADMIN
from .services import alert_service, inventory_service, user_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-name', default='Administrator', help='Name of the default admin user')
@click.option('--admin-email', default='admin@sms.local', help='Email of the default admin user')
@with_appcontext
def init_system(admin_name, admin_email):
    """
    Create all tables and seed a default admin user.

    Safe to run repeatedly: existing tables and users are left alone.
    """
    click.echo("BUILD  Creating tables...")
    db.create_all()

    existing = db.session.query(User).filter_by(email=admin_email.lower()).first()
    if existing:
        click.echo(f"SKIP Admin user {existing.email} already exists")
    else:
        user = user_service.create_user(name=admin_name, email=admin_email, role=ROLE_ADMIN)
        click.echo(f"PASS Created admin user {user.email} (id={user.id})")

    click.echo("PASS System initialized.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, role):
    """Create a staff user."""
    try:
        user = user_service.create_user(name=name, email=email, role=role)
    except InventoryError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.email} (id={user.id}, role={user.role})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(ROLES)), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    users = user_service.list_users(role=role)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<30} {'Role'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<30} {user.role}")

    click.echo("="*80 + "\n")


@click.group('products')
def products_group():
    """Product stock inspection."""


@products_group.command('list')
@click.option('--low-stock', is_flag=True, help='Only products below their threshold')
@with_appcontext
def list_products_cli(low_stock):
    """List products with current stock."""
    products = inventory_service.list_products(low_stock_only=low_stock)

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Code':<16} {'Description':<35} {'Stock':>8} {'Min':>6}  Flag")
    click.echo("="*90)

    for p in products:
        flag = "LOW" if p.is_low_stock else ""
        description = (p.description or "")[:35]
        click.echo(
            f"{p.id:<5} {p.product_code:<16} {description:<35} "
            f"{p.current_stock:>8} {p.min_stock_threshold:>6}  {flag}"
        )

    click.echo("="*90 + "\n")


@click.group('alerts')
def alerts_group():
    """Low-stock alert inspection."""


@alerts_group.command('list')
@click.option('--limit', type=int, default=20, show_default=True, help='Maximum alerts to show')
@with_appcontext
def list_alerts_cli(limit):
    """List active alerts, newest first."""
    alerts = alert_service.list_active_alerts(limit)

    if not alerts:
        click.echo("No active alerts.")
        return

    for alert in alerts:
        click.echo(f"[{alert.created_at}] #{alert.id} product={alert.product_id} {alert.message}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
    app.cli.add_command(alerts_group)
