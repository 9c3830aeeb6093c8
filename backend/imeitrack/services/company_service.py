# Overview: Service-layer helpers that resolve company membership and owner scope.

"""
Company Membership Resolver

WHY: A "company" is not a table. It is an admin plus every staff account that
admin created. Record ownership is expressed through created_by, so every
scoped read needs the set of user ids that belong to the caller's company.

INVARIANTS:
1. company_user_ids(admin_id) always contains admin_id
2. Membership is recomputed on every call (no cache); a staff account created
   or deleted mid-session is reflected on the next request
3. owner_scope() is the only place that decides which created_by values a
   principal may see, so lists, counts and aggregates never drift apart

USAGE:
    from imeitrack.services.company_service import owner_scope, apply_owner_scope

    scope = owner_scope(principal)
    query = apply_owner_scope(query, ImeiRecord.created_by, scope)
"""

from ..extensions import db
from ..models import User
from ..permissions import Role


def company_user_ids(admin_id: int) -> set[int]:
    """Return {admin_id} plus the ids of all staff created by that admin."""
    staff_ids = db.session.query(User.id).filter(
        User.created_by == admin_id,
        User.role == Role.STAFF,
    ).all()
    return {admin_id} | {row.id for row in staff_ids}


def is_user_in_company(admin_id: int, target_user_id: int | None) -> bool:
    if target_user_id is None:
        return False
    return target_user_id in company_user_ids(admin_id)


def owner_scope(principal) -> set[int] | None:
    """
    Owner ids visible to the principal.

    None means "no filter" (superadmin). Admins see their whole company,
    staff only their own records.
    """
    if principal.is_superadmin:
        return None
    if principal.is_admin:
        return company_user_ids(principal.id)
    return {principal.id}


def apply_owner_scope(query, column, scope: set[int] | None, *, include_ownerless: bool = False):
    """
    Filter query so column falls within scope.

    include_ownerless adds rows where column IS NULL (superadmin-owned data
    shared with every tenant, e.g. brands).
    """
    if scope is None:
        return query
    condition = column.in_(sorted(scope))
    if include_ownerless:
        condition = db.or_(condition, column.is_(None))
    return query.filter(condition)


def company_admin_id(user: User) -> int | None:
    """Admin id that owns the user's company (None for superadmins)."""
    if user.role == Role.ADMIN:
        return user.id
    if user.role == Role.STAFF:
        return user.created_by
    return None
