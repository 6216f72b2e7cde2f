# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username admin --email admin@store.local --password "Password123!" --role admin
#   Create a user (prompts if options are omitted). The only way to create administrators.
#
# Products:
# - python -m flask products list
#   List active products with stock.
# - python -m flask products add --batch-number L-001 --name "Coffee" --price-cents 1250 --quantity 40
#   Add a product.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import StorefrontError
from .models import User
from .models.auth import ROLES
from .services import auth_service, products_service
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("PASS Database schema ready")


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
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.username:<20} {u.email:<32} {u.role:<9} {status}")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, email, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter, lowercase letter, digit and special character
    """
    try:
        user = auth_service.create_user(username, email.strip().lower(), password, role=role)
    except StorefrontError as e:
        messages = getattr(e, "errors", None) or [{"message": e.message}]
        for m in messages:
            click.echo(f"FAIL {m['message']}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")


@click.group('products')
def products_group():
    """Product inspection and seeding commands."""


@products_group.command('list')
@with_appcontext
def list_products_cli():
    """List active products with stock on hand."""
    items = products_service.list_products()["items"]
    if not items:
        click.echo("No products found")
        return
    for p in items:
        click.echo(f"{p['id']:>4}  {p['name']:<30} batch={p['batch_number']:<12} "
                   f"price_cents={p['price_cents']:<8} qty={p['quantity']}")


@products_group.command('add')
@click.option('--batch-number', required=True, help='Lot number')
@click.option('--name', required=True, help='Product name')
@click.option('--price-cents', type=click.IntRange(min=0), required=True, help='Unit price in cents')
@click.option('--quantity', type=click.IntRange(min=0), default=0, show_default=True, help='Initial stock')
@click.option('--entry-date', default=None, help='Entry date (YYYY-MM-DD)')
@with_appcontext
def add_product_cli(batch_number, name, price_cents, quantity, entry_date):
    """Add a product."""
    try:
        entry = parse_iso_date(entry_date)
    except ValueError:
        raise click.BadParameter("must be YYYY-MM-DD", param_hint="--entry-date")

    created = products_service.create_product(patch={
        "batch_number": batch_number,
        "name": name,
        "price_cents": price_cents,
        "quantity": quantity,
        "entry_date": entry,
    })
    click.echo(f"PASS Created product {created['id']}: {created['name']} (qty {created['quantity']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
