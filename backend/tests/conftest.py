"""
Pytest fixtures for imeitrack backend tests.

Provides an in-memory database app, a per-test table wipe, the three-tier
account fixtures (superadmin, two companies, staff) and login helpers.
"""

import pytest

from imeitrack import create_app
from imeitrack.extensions import db
from imeitrack.permissions import MENU_PERMISSION_CODES, Role
from imeitrack.services import auth_service
from imeitrack.services.auth_service import create_user
from imeitrack.services.session_service import Principal


PASSWORD = "Password123!"
ALL_MENUS = {code: True for code in MENU_PERMISSION_CODES}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ALLOW_SELF_REGISTRATION': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session', autouse=True)
def fast_bcrypt():
    """Cost 12 makes every account fixture take a quarter second."""
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(auth_service, 'BCRYPT_ROUNDS', 4)
        yield


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(role, name, email, *, created_by=None, permissions=None):
    return create_user(
        name=name,
        email=email,
        password=PASSWORD,
        role=role,
        permissions=permissions,
        created_by=created_by,
    )


def as_principal(user) -> Principal:
    return Principal.from_user(user)


@pytest.fixture(scope='function')
def superadmin(db_session):
    return make_user(Role.SUPERADMIN, "Root", "root@example.com")


@pytest.fixture(scope='function')
def company_x(db_session):
    """Admin "CompanyX" with every menu enabled."""
    return make_user(Role.ADMIN, "CompanyX", "x@example.com", permissions=ALL_MENUS)


@pytest.fixture(scope='function')
def company_y(db_session):
    """Admin "CompanyY", a second tenant."""
    return make_user(Role.ADMIN, "CompanyY", "y@example.com", permissions=ALL_MENUS)


@pytest.fixture(scope='function')
def bob(company_x):
    """Staff of CompanyX with dashboard and stock only."""
    return make_user(
        Role.STAFF, "Bob", "bob@example.com",
        created_by=company_x.id,
        permissions={"dashboard": True, "stock": True},
    )


@pytest.fixture(scope='function')
def alice(company_x):
    """Second staff member of CompanyX."""
    return make_user(
        Role.STAFF, "Alice", "alice@example.com",
        created_by=company_x.id,
        permissions={"dashboard": True},
    )


@pytest.fixture(scope='function')
def carol(company_y):
    """Staff of CompanyY."""
    return make_user(
        Role.STAFF, "Carol", "carol@example.com",
        created_by=company_y.id,
        permissions={"dashboard": True},
    )


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def login(client):
    """login(user) -> Authorization headers for that user."""
    def _login(user, password=PASSWORD):
        token = get_auth_token(client, user.email, password)
        assert token, f"login failed for {user.email}"
        return auth_headers(token)
    return _login
