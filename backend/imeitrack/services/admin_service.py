# Overview: Service-layer operations for admin (company) accounts; superadmin only.

"""
Admin / Company Service

An admin account is a company. Only superadmins list, create, edit and
delete them, and only superadmins see the company rollup (company_details),
which runs the ordinary scoped services "as" the admin so the numbers match
what that admin sees on their own dashboard.

Deleting an admin does not cascade: their staff and records stay, keyed by
created_by.
"""

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import Role
from ..validation import NotFoundError, ValidationError, clamp_pagination, pagination_meta
from . import activity_service, imei_service, sold_service, staff_service, stock_service
from .access_service import require_role
from .auth_service import apply_account_update, commit_account_changes, create_user
from .session_service import Principal, revoke_all_user_sessions


RECENT_LIMIT = 5


def _admin_query(q: str | None = None):
    query = db.session.query(User).filter(User.role == Role.ADMIN)
    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(db.or_(User.name.ilike(like), User.email.ilike(like)))
    return query


def list_admins(principal, q: str | None = None, page=None, page_size=None, *, default_size: int = 20) -> dict:
    require_role(principal, Role.SUPERADMIN)
    page, page_size = clamp_pagination(page, page_size, default_size=default_size)
    query = _admin_query(q)

    total = query.count()
    admins = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [a.to_dict() for a in admins],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def _load(admin_id: int) -> User:
    user = db.session.get(User, admin_id)
    if user is None or user.role != Role.ADMIN:
        raise NotFoundError("Admin not found")
    return user


def get_admin(principal, admin_id: int) -> dict:
    require_role(principal, Role.SUPERADMIN)
    return _load(admin_id).to_dict()


def create_admin(principal, payload: dict, *, ip_address: str | None = None) -> dict:
    """Create a company admin. Admins created here have created_by = None."""
    require_role(principal, Role.SUPERADMIN)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in ("name", "email", "password") if not payload.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    user = create_user(
        name=payload["name"],
        email=payload["email"],
        password=payload["password"],
        role=Role.ADMIN,
        permissions=payload.get("permissions") or {},
        created_by=None,
    )

    activity_service.log_admin_create(principal, user.id, user.name, ip_address=ip_address)
    return user.to_dict()


def update_admin(principal, admin_id: int, payload: dict, *, ip_address: str | None = None) -> dict:
    require_role(principal, Role.SUPERADMIN)
    user = _load(admin_id)

    changes = apply_account_update(user, payload)
    commit_account_changes()

    if "password" in changes:
        revoke_all_user_sessions(user.id, "Password changed by superadmin")

    activity_service.log_admin_update(principal, user.id, user.name, ip_address=ip_address)
    return user.to_dict()


def delete_admin(principal, admin_id: int, *, ip_address: str | None = None) -> None:
    require_role(principal, Role.SUPERADMIN)
    if admin_id == principal.id:
        raise ValidationError("Cannot delete yourself")

    user = _load(admin_id)
    name = user.name
    db.session.delete(user)
    db.session.commit()

    activity_service.log_admin_delete(principal, admin_id, name, ip_address=ip_address)


def company_details(principal, admin_id: int) -> dict:
    """
    Rollup of one company for the superadmin console.

    {admin, stats: {staff_count, imei_count, sold_count, stock_stats},
     recent: {staff, imei, sold}} with the five newest of each.
    """
    require_role(principal, Role.SUPERADMIN)
    admin = _load(admin_id)
    as_admin = Principal.from_user(admin)

    return {
        "admin": {
            "id": admin.id,
            "name": admin.name,
            "email": admin.email,
            "permissions": admin.permission_flags,
            "created_at": admin.to_dict()["created_at"],
        },
        "stats": {
            "staff_count": staff_service.count_staff(as_admin),
            "imei_count": imei_service.count_imei_records(as_admin),
            "sold_count": sold_service.count_sold_records(as_admin),
            "stock_stats": stock_service.stock_statistics(as_admin),
        },
        "recent": {
            "staff": staff_service.list_staff(as_admin, page=1, page_size=RECENT_LIMIT)["items"],
            "imei": imei_service.list_imei_records(as_admin, page=1, page_size=RECENT_LIMIT)["items"],
            "sold": sold_service.list_sold_records(as_admin, page=1, page_size=RECENT_LIMIT)["items"],
        },
    }
