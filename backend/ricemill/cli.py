# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/ricemill/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables and a default admin (admin@ricemill.local) if none exists.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create-admin --name "Mill Owner" --email owner@mill.local --password "Password123"
#
# Dealers:
# - python -m flask dealers list [--status active]
# - python -m flask dealers create --name "Ravi" --business "Ravi Traders" --contact 9999999999 --location Guntur
# - python -m flask dealers disable DLR0001
#
# Godowns and stock:
# - python -m flask godowns list
# - python -m flask godowns create --name "Godown A" --location "North Yard" --capacity 50000
# - python -m flask stock add --name Royal --type Basmati --godown-id 1 --kg 1000 --bags 25kg=40
# - python -m flask stock list

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .errors import RiceMillError
from .extensions import db
from .models import User
from .services import auth_service, dealer_service, godown_service, stock_service
from .units import BAG_SIZES, RICE_TYPES, STOCK_TYPES


def _fail(exc: RiceMillError):
    raise click.ClickException(str(exc))


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@ricemill.local', help='Default admin email')
@click.option('--password', default='Password123', help='Default admin password')
@with_appcontext
def init_system(email, password):
    """
    Create tables and a default admin account.

    Idempotent: an existing admin is left untouched.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing rice mill system...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(role="admin").first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email} (ID: {existing.id})")
        return

    try:
        admin = auth_service.create_admin(name="Administrator", email=email, password=password)
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")


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


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        state = "active" if u.is_active else "inactive"
        dealer = f" dealer={u.dealer_code}" if u.dealer_code else ""
        click.echo(f"{u.id:>4}  {u.email:<32} {u.role:<7} {state}{dealer}")


@users_group.command('create-admin')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(name, email, password):
    try:
        user = auth_service.create_admin(name=name, email=email, password=password)
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Created admin {user.email} (ID: {user.id})")


# =============================================================================
# DEALERS
# =============================================================================

@click.group('dealers')
def dealers_group():
    """Dealer registry commands."""


@dealers_group.command('list')
@click.option('--status', type=click.Choice(['active', 'inactive']), default=None)
@with_appcontext
def list_dealers(status):
    dealers = dealer_service.list_dealers(status=status)
    if not dealers:
        click.echo("No dealers found.")
        return
    for d in dealers:
        click.echo(f"{d.dealer_id}  {d.business_name:<32} {d.location:<20} {d.status}")


@dealers_group.command('create')
@click.option('--name', 'dealer_name', required=True)
@click.option('--business', 'business_name', required=True)
@click.option('--contact', 'contact_number', required=True)
@click.option('--location', required=True)
@click.option('--gst', 'gst_number', default=None)
@with_appcontext
def create_dealer(dealer_name, business_name, contact_number, location, gst_number):
    try:
        dealer = dealer_service.create_dealer({
            "dealer_name": dealer_name,
            "business_name": business_name,
            "contact_number": contact_number,
            "location": location,
            "gst_number": gst_number,
        })
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Created dealer {dealer.dealer_id} ({dealer.business_name})")


@dealers_group.command('disable')
@click.argument('dealer_id')
@with_appcontext
def disable_dealer(dealer_id):
    try:
        dealer = dealer_service.get_dealer_by_code(dealer_id)
        dealer_service.disable_dealer(dealer.id)
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Disabled dealer {dealer_id}")


# =============================================================================
# GODOWNS & STOCK
# =============================================================================

@click.group('godowns')
def godowns_group():
    """Godown commands."""


@godowns_group.command('list')
@with_appcontext
def list_godowns():
    for g in godown_service.list_godowns():
        click.echo(f"{g.id:>4}  {g.name:<24} {g.current_stock}/{g.capacity} ({g.capacity_percent}%) {g.stock_type}")


@godowns_group.command('create')
@click.option('--name', required=True)
@click.option('--location', required=True)
@click.option('--capacity', type=click.FLOAT, required=True)
@click.option('--stock-type', type=click.Choice(STOCK_TYPES), default='mixed')
@with_appcontext
def create_godown(name, location, capacity, stock_type):
    try:
        godown = godown_service.create_godown({
            "name": name,
            "location": location,
            "capacity": Decimal(str(capacity)),
            "stock_type": stock_type,
        })
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Created godown {godown.name} (ID: {godown.id})")


@click.group('stock')
def stock_group():
    """Rice stock (SKU) commands."""


@stock_group.command('list')
@with_appcontext
def list_stock():
    for s in stock_service.list_stock():
        bags = ", ".join(f"{size}={count}" for size, count in s.bags_stock.items() if count)
        click.echo(f"{s.id:>4}  {s.rice_type:<14} {s.rice_name:<20} {s.quantity_kg} kg  [{bags}] {s.status}")


@stock_group.command('add')
@click.option('--name', 'rice_name', required=True, help='Brand / rice name')
@click.option('--type', 'rice_type', type=click.Choice(RICE_TYPES), required=True)
@click.option('--godown-id', type=int, required=True)
@click.option('--kg', 'quantity_kg', type=click.FLOAT, required=True)
@click.option('--bags', multiple=True, help='SIZE=COUNT, repeatable (e.g. 25kg=40)')
@with_appcontext
def add_stock(rice_name, rice_type, godown_id, quantity_kg, bags):
    bags_stock = {}
    for item in bags:
        size, _, count = item.partition("=")
        if size not in BAG_SIZES or not count.isdigit():
            raise click.BadParameter(f"expected SIZE=COUNT with SIZE in {', '.join(BAG_SIZES)}", param_hint="--bags")
        bags_stock[size] = int(count)
    try:
        sku = stock_service.add_stock(
            {
                "rice_name": rice_name,
                "rice_type": rice_type,
                "quantity_kg": Decimal(str(quantity_kg)),
                "godown_id": godown_id,
            },
            bags_stock=bags_stock,
        )
    except RiceMillError as e:
        _fail(e)
    click.echo(f"PASS Added SKU {sku.id}: {sku.rice_type} / {sku.rice_name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(dealers_group)
    app.cli.add_command(godowns_group)
    app.cli.add_command(stock_group)
