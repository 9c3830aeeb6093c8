# Overview: Pytest coverage for the Flask CLI bootstrap and repair commands.

from conftest import PASSWORD
from imeitrack.models import User
from imeitrack.permissions import MENU_PERMISSION_CODES, Role


def test_create_superadmin(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        'users', 'create-superadmin',
        '--name', 'Root', '--email', 'Root@Example.com', '--password', PASSWORD,
    ])
    assert result.exit_code == 0, result.output
    user = db_session.query(User).filter_by(email='root@example.com').one()
    assert user.role == Role.SUPERADMIN
    assert user.created_by is None


def test_create_superadmin_rejects_short_password(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        'users', 'create-superadmin', '--name', 'Root', '--email', 'root@example.com', '--password', 'short',
    ])
    assert result.exit_code != 0
    assert 'Password validation failed' in result.output
    assert db_session.query(User).count() == 0


def test_users_list(app, db_session, company_x, bob):
    result = app.test_cli_runner().invoke(args=['users', 'list', '--role', 'staff'])
    assert result.exit_code == 0
    assert 'bob@example.com' in result.output
    assert 'x@example.com' not in result.output


def test_perms_normalize(app, db_session, company_x, bob):
    company_x.permissions = '["dashboard"]'
    bob.permissions = {"stock": True}
    db_session.commit()

    runner = app.test_cli_runner()
    dry = runner.invoke(args=['perms', 'normalize', '--dry-run'])
    assert dry.exit_code == 0
    assert db_session.get(User, company_x.id).permissions == '["dashboard"]'

    result = runner.invoke(args=['perms', 'normalize'])
    assert result.exit_code == 0
    assert 'PASS 2 of 2' in result.output
    assert db_session.get(User, company_x.id).permissions == {code: False for code in MENU_PERMISSION_CODES}
    assert db_session.get(User, bob.id).permissions["stock"] is True


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()
    assert runner.invoke(args=['system', 'init']).exit_code == 0
    result = runner.invoke(args=['system', 'init'])
    assert result.exit_code == 0
    assert 'No superadmin yet' in result.output


def test_perms_list(app):
    result = app.test_cli_runner().invoke(args=['perms', 'list'])
    assert result.exit_code == 0
    assert result.output.splitlines()[0].startswith('dashboard')
