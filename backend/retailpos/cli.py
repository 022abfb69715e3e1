# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store "Main Store"] [--code MAIN]
#   Idempotent bootstrap: creates a default store and one user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Store management:
# - python -m flask stores list
# - python -m flask stores create --name "Branch 2" --code BR2
#
# User inspection/bootstrap:
# - python -m flask users list [--store-id 1]
# - python -m flask users create --username jane --email jane@retailpos.local --password "Password123!" --role manager --store-id 1
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User
from .permissions import ROLES, ROLE_SUPER_ADMIN
from .services.auth_service import create_user
from .validation import ConflictError, NotFoundError, ValidationError


DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store', 'store_name', default='Main Store', help='Default store name')
@click.option('--code', 'store_code', default='MAIN', help='Default store code')
@with_appcontext
def init_system(store_name, store_code):
    """
    Initialize the system: schema, default store and default users.

    Creates:
    - All tables (if missing)
    - Default store
    - Users: superadmin (no store), admin, manager, sales (default store)
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing RetailPOS...")

    db.create_all()

    store = db.session.query(Store).filter_by(code=store_code).first()
    if not store:
        store = Store(name=store_name, code=store_code, is_active=True)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id}, Code: {store.code})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    click.echo("\nUSERS Creating default users...")
    default_users = [
        ("superadmin", "superadmin@retailpos.local", ROLE_SUPER_ADMIN, None),
        ("admin", "admin@retailpos.local", "admin", store.id),
        ("manager", "manager@retailpos.local", "manager", store.id),
        ("sales", "sales@retailpos.local", "sales", store.id),
    ]

    for username, email, role, store_id in default_users:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(
                username=username,
                email=email,
                password=DEFAULT_PASSWORD,
                role=role,
                store_id=store_id,
            )
            click.echo(f"PASS Created user: {username} ({email}) with role '{role}'")
        except (ValidationError, ConflictError, NotFoundError) as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {e}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE RetailPOS initialized")
    click.echo("=" * 60)
    click.echo(f"\nStore: {store.name} (ID: {store.id})")
    click.echo(f"Default password for all users: {DEFAULT_PASSWORD} (CHANGE IN PRODUCTION!)")


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
# STORE MANAGEMENT COMMANDS
# =============================================================================

@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('list')
@with_appcontext
def list_stores():
    """List all stores."""
    stores = db.session.query(Store).order_by(Store.id.asc()).all()

    if not stores:
        click.echo("No stores found.")
        return

    click.echo("\n" + "=" * 70)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<12} {'Active':<8} {'Users'}")
    click.echo("=" * 70)

    for store in stores:
        user_count = db.session.query(User).filter_by(store_id=store.id).count()
        active_str = "Yes" if store.is_active else "No"
        click.echo(f"{store.id:<5} {store.name:<30} {store.code or '-':<12} {active_str:<8} {user_count}")

    click.echo("=" * 70 + "\n")


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@click.option('--code', required=True, help='Short code (unique)')
@click.option('--domain', default=None, help='Custom domain')
@click.option('--subdomain', default=None, help='Subdomain')
@with_appcontext
def create_store_cli(name, code, domain, subdomain):
    """Create a new store."""
    if db.session.query(Store).filter_by(code=code).first():
        click.echo(f"FAIL Store with code '{code}' already exists")
        return

    store = Store(name=name, code=code, domain=domain, subdomain=subdomain, is_active=True)
    db.session.add(store)
    db.session.commit()

    click.echo(f"PASS Created store: {store.name} (ID: {store.id}, Code: {store.code})")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--store-id', type=int, default=None, help='Store ID (required except for super_admin)')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, store_id, name):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            store_id=store_id,
            name=name,
        )
    except (ValidationError, ConflictError, NotFoundError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) role '{user.role}' store {user.store_id or '-'}")


@users_group.command('list')
@click.option('--store-id', type=int, default=None, help='Filter by store')
@with_appcontext
def list_users(store_id):
    """List users with role and active status."""
    query = db.session.query(User)
    if store_id is not None:
        query = query.filter_by(store_id=store_id)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<12} {'Store':<6} {'Active'}")
    click.echo("=" * 80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        store_str = str(user.store_id) if user.store_id else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.role:<12} {store_str:<6} {active_str}")

    click.echo("=" * 80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
