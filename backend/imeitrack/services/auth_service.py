# Overview: Service-layer operations for auth; password hashing, account creation and login.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing.

ACCOUNTS: users are created by a superadmin (admins), by an admin (staff),
by the CLI (superadmins), or by public self-registration (admins) when
ALLOW_SELF_REGISTRATION is on. Email is the login identifier and is
unique across the whole system.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..permissions import Role, ROLES, expand_permissions
from ..validation import ConflictError, ValidationError
from imeitrack.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    email = email.strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("Email is not valid")
    return email


def normalize_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    return name.strip()


def email_taken(email: str, exclude_user_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    permissions=None,
    created_by: int | None = None,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Email uniqueness is enforced by uq_users_email; a concurrent duplicate
    surfaces as IntegrityError on commit and is reported as ConflictError.

    Raises:
        ValidationError / PasswordValidationError: bad input
        ConflictError: email already registered
    """
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")

    user = User(
        name=normalize_name(name),
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role,
        created_by=created_by,
    )
    if permissions is None:
        # Superadmins never consult flags; everyone else starts with none.
        user.permissions = None
    else:
        user.set_permissions(permissions)

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already exists")
    return user


def register_admin(name: str, email: str, password: str) -> User:
    """Public sign-up: creates a company admin owned by nobody."""
    return create_user(
        name=name,
        email=email,
        password=password,
        role=Role.ADMIN,
        permissions=None,
        created_by=None,
    )


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate by email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at on success.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


ACCOUNT_FIELDS = {"name", "email", "password", "permissions"}


def apply_account_update(user: User, payload: dict, *, allowed: set[str] = ACCOUNT_FIELDS) -> dict:
    """
    Apply name/email/password/permissions changes to user (not committed).

    Returns {field: {"old", "new"}} for the fields that changed; the password
    is reported as changed without its value. Unknown fields are rejected.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    # Validate everything before touching the user row.
    updates = {}
    if "name" in payload:
        updates["name"] = normalize_name(payload["name"])
    if "email" in payload:
        email = normalize_email(payload["email"])
        if email != user.email and email_taken(email, exclude_user_id=user.id):
            raise ConflictError("Email already exists")
        updates["email"] = email
    if "permissions" in payload:
        updates["permissions"] = expand_permissions(payload["permissions"])
    password = payload.get("password")
    password_hash = hash_password(password) if password not in (None, "") else None

    changes = {}
    for field, new in updates.items():
        old = user.permission_flags if field == "permissions" else getattr(user, field)
        if old != new:
            changes[field] = {"old": old, "new": new}
            setattr(user, field, new)

    if password_hash:
        user.password_hash = password_hash
        changes["password"] = {"changed": True}

    return changes


def commit_account_changes() -> None:
    """Commit pending account changes; a racing duplicate email becomes ConflictError."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already exists")
