# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/imeitrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create any missing tables (use `flask db upgrade` for managed schemas).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users create-superadmin --name "Root" --email root@example.com --password "..."
#   Create the platform superadmin (prompts if options are omitted).
# - python -m flask users list [--role admin]
#   List accounts with role, owner and permission flags.
#
# Permission inspection/repair:
# - python -m flask perms list
#   List menu permission codes with their landing paths.
# - python -m flask perms normalize [--dry-run]
#   Rewrite every stored permissions value into the full {code: bool} object.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import MENU_PERMISSION_CODES, ROLES, Role, expand_permissions, get_permission_definition
from .services.auth_service import create_user, PasswordValidationError
from .services import session_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet. Existing data is untouched."""
    db.create_all()
    superadmins = db.session.query(User).filter(User.role == Role.SUPERADMIN).count()
    click.echo("PASS Database tables ready")
    if not superadmins:
        click.echo("WARN  No superadmin yet, run 'flask users create-superadmin'")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("This will delete ALL data. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create-superadmin')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_superadmin_cli(name, email, password):
    """
    Create a superadmin account.

    Superadmins see every company, bypass menu permissions and are never
    written to the activity log. Password must be at least 8 characters.
    """
    try:
        user = create_user(
            name=name,
            email=email,
            password=password,
            role=Role.SUPERADMIN,
            permissions=None,
            created_by=None,
        )
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(f"Failed to create superadmin: {e}")

    click.echo(f"PASS Created superadmin: {user.name} ({user.email})")
    click.echo(f"     User ID: {user.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their role, owner and enabled menus."""
    query = db.session.query(User).order_by(User.id)
    if role:
        query = query.filter(User.role == role)

    users = query.all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<5} {'Role':<11} {'Owner':<6} {'Name':<20} {'Email':<30} {'Menus'}")
    click.echo("="*110)

    for user in users:
        if user.role == Role.SUPERADMIN:
            menus = "all"
        else:
            menus = ", ".join(code for code, on in user.permission_flags.items() if on) or "none"
        owner = user.created_by if user.created_by is not None else "-"
        click.echo(f"{user.id:<5} {user.role:<11} {owner!s:<6} {user.name[:20]:<20} {user.email[:30]:<30} {menus}")

    click.echo("="*110 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


@perms_group.command('list')
def list_permissions_cli():
    """List menu permission codes in landing-page priority order."""
    for code in MENU_PERMISSION_CODES:
        perm = get_permission_definition(code)
        click.echo(f"{perm['code']:<10} {perm['path']:<12} {perm['description']}")


@perms_group.command('normalize')
@click.option('--dry-run', is_flag=True, help='Report rows that would change without writing')
@with_appcontext
def normalize_permissions_cli(dry_run):
    """
    Rewrite stored permissions into the expanded {code: bool} object.

    Legacy rows may hold NULL, arrays, JSON strings or double-encoded JSON.
    Superadmin rows are skipped; their flags are never consulted.
    """
    changed = 0
    users = db.session.query(User).filter(User.role != Role.SUPERADMIN).all()
    for user in users:
        expanded = expand_permissions(user.permissions)
        if user.permissions == expanded:
            continue
        changed += 1
        click.echo(f"{'WOULD FIX' if dry_run else 'FIX'} user {user.id} ({user.email})")
        if not dry_run:
            user.permissions = expanded

    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()
    click.echo(f"PASS {changed} of {len(users)} users {'need' if dry_run else 'had'} normalization")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions created more than 30 days ago."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} stale sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
