# Overview: Service-layer authorization guard; decides whether a principal may touch a record.

"""
Authorization Guard

WHY: One dispatch point for the role rules. Services load a record, raise
NotFoundError if it does not exist, and only then ask the guard. Missing and
forbidden are different answers and never collapse into one.

RULES:
- superadmin: everything
- admin: records owned by anyone in their company, plus ownerless records
- staff: their own records, plus ownerless records

Account records (staff/admin users) use require_user_management instead:
an admin may manage only the staff accounts they created.
"""

from dataclasses import dataclass

from .company_service import is_user_in_company
from ..permissions import Role


class AccessDeniedError(PermissionError):
    """Raised when the principal may not act on a record (HTTP 403)."""

    def __init__(self, message: str = "Access denied", *, reason: str | None = None):
        super().__init__(message)
        self.reason = reason or message


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(True)


def authorize(principal, owner_id: int | None, action: str = "read") -> AccessDecision:
    """
    Decide whether principal may perform action on a record owned by owner_id.

    action is informational; the rules are the same for read, update and
    delete.
    """
    if principal.is_superadmin:
        return ALLOW

    if owner_id is None:
        return ALLOW

    if principal.is_admin:
        if is_user_in_company(principal.id, owner_id):
            return ALLOW
        return AccessDecision(False, "not in your company")

    if principal.is_staff:
        if owner_id == principal.id:
            return ALLOW
        return AccessDecision(False, "not your record")

    return AccessDecision(False, "unknown role")


def require_access(principal, owner_id: int | None, action: str = "read") -> None:
    decision = authorize(principal, owner_id, action)
    if not decision.allowed:
        raise AccessDeniedError(
            f"You do not have permission to {action} this record",
            reason=decision.reason,
        )


def require_user_management(principal, target_user, action: str = "update") -> None:
    """
    Guard for staff/admin account records.

    Superadmins manage everyone. Admins manage only staff whose created_by is
    themselves. Staff manage nobody through this path (see profile_service).
    """
    if principal.is_superadmin:
        return
    if (
        principal.is_admin
        and target_user.role == Role.STAFF
        and target_user.created_by == principal.id
    ):
        return
    raise AccessDeniedError(
        f"You do not have permission to {action} this user",
        reason="not your staff",
    )


def require_role(principal, *roles: str) -> None:
    if principal.role not in roles:
        raise AccessDeniedError(
            "Insufficient role",
            reason=f"requires one of: {', '.join(roles)}",
        )
