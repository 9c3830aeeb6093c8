# Overview: Service-layer operations for the caller's own profile.

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..validation import NotFoundError, ValidationError
from . import activity_service
from .auth_service import apply_account_update, commit_account_changes, verify_password
from .session_service import revoke_all_user_sessions


def _load_self(principal) -> User:
    user = db.session.get(User, principal.id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_profile(principal) -> dict:
    return _load_self(principal).to_dict()


def update_profile(principal, payload: dict, *, ip_address: str | None = None, current_token: str | None = None) -> dict:
    """
    Change own name, email and/or password.

    A new password requires the correct current_password. Other sessions of
    the user are revoked after a password change; current_token is kept.

    Raises:
        ValidationError: nothing to update, wrong current password, bad input
        ConflictError: email already in use
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    user = _load_self(principal)

    update = {}
    for field in ("name", "email"):
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            update[field] = value

    new_password = payload.get("new_password")
    if new_password:
        current_password = payload.get("current_password")
        if not current_password:
            raise ValidationError("Current password is required to change password")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        update["password"] = new_password

    if not update:
        raise ValidationError("No fields to update")

    changes = apply_account_update(user, update, allowed={"name", "email", "password"})
    commit_account_changes()

    if "password" in changes:
        revoke_all_user_sessions(user.id, "Password changed", except_token=current_token)

    activity_service.log_profile_update(principal, changes, ip_address=ip_address)
    return user.to_dict()
