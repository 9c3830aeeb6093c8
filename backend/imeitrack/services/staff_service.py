# Overview: Service-layer operations for staff accounts; admins manage the staff they created.

"""
Staff Account Service

WHO MAY CALL:
- superadmin: every staff account; must name the company (admin) a new staff
  member belongs to, so every staff row keeps a created_by
- admin: only staff whose created_by is the admin
- staff: nobody (AccessDeniedError)
"""

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import Role
from ..validation import NotFoundError, ValidationError, clamp_pagination, pagination_meta
from . import activity_service
from .access_service import require_role, require_user_management
from .auth_service import apply_account_update, commit_account_changes, create_user
from .session_service import revoke_all_user_sessions


def _staff_query(principal, q: str | None = None):
    query = db.session.query(User).filter(User.role == Role.STAFF)
    if principal.is_admin:
        query = query.filter(User.created_by == principal.id)

    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(db.or_(User.name.ilike(like), User.email.ilike(like)))
    return query


def list_staff(principal, q: str | None = None, page=None, page_size=None, *, default_size: int = 20) -> dict:
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    page, page_size = clamp_pagination(page, page_size, default_size=default_size)
    query = _staff_query(principal, q)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [u.to_dict() for u in users],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def count_staff(principal, q: str | None = None) -> int:
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    return _staff_query(principal, q).count()


def _load(staff_id: int) -> User:
    user = db.session.get(User, staff_id)
    if user is None or user.role != Role.STAFF:
        raise NotFoundError("Staff not found")
    return user


def get_staff(principal, staff_id: int) -> dict:
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    user = _load(staff_id)
    require_user_management(principal, user, "read")
    return user.to_dict()


def _company_for_new_staff(principal, payload: dict) -> int:
    if principal.is_admin:
        return principal.id

    raw = payload.get("company_id")
    if raw in (None, ""):
        raise ValidationError("company_id is required when a superadmin creates staff")
    try:
        company_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("company_id must be an integer")

    admin = db.session.get(User, company_id)
    if admin is None or admin.role != Role.ADMIN:
        raise ValidationError("company_id must be the id of an admin")
    return admin.id


def create_staff(principal, payload: dict, *, ip_address: str | None = None) -> dict:
    """
    Create a staff account inside a company.

    Raises:
        ValidationError: missing name/email/password, bad company_id
        ConflictError: email already registered
    """
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in ("name", "email", "password") if not payload.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    user = create_user(
        name=payload["name"],
        email=payload["email"],
        password=payload["password"],
        role=Role.STAFF,
        permissions=payload.get("permissions") or {},
        created_by=_company_for_new_staff(principal, payload),
    )

    activity_service.log_staff_create(principal, user.id, user.name, ip_address=ip_address)
    return user.to_dict()


def update_staff(principal, staff_id: int, payload: dict, *, ip_address: str | None = None) -> dict:
    """Update name, email, permissions and (optionally) password."""
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    user = _load(staff_id)
    require_user_management(principal, user, "update")

    changes = apply_account_update(user, payload)
    commit_account_changes()

    if "password" in changes:
        revoke_all_user_sessions(user.id, "Password changed by admin")

    activity_service.log_staff_update(principal, user.id, user.name, ip_address=ip_address)
    return user.to_dict()


def delete_staff(principal, staff_id: int, *, ip_address: str | None = None) -> None:
    """
    Delete a staff account.

    Records the staff member created keep their created_by. With the account
    gone they drop out of the company scope; they are not reassigned.
    """
    require_role(principal, Role.SUPERADMIN, Role.ADMIN)
    user = _load(staff_id)
    require_user_management(principal, user, "delete")

    name = user.name
    db.session.delete(user)
    db.session.commit()

    activity_service.log_staff_delete(principal, staff_id, name, ip_address=ip_address)
