# Overview: Service-layer operations for the activity audit log; append-only writes and scoped reads.

"""
Activity Audit Log

WHY: Admins need to see who in their company created, changed or removed
stock, and when people logged in. Every successful mutation by an admin or a
staff member appends one ActivityLog row.

RULES:
- Superadmin actions are never recorded (single check in record_activity)
- Writing the log must never fail the operation that triggered it: errors are
  rolled back and logged, not raised
- Reads use the same owner scope as every other list, applied to user_id
"""

from __future__ import annotations

from datetime import datetime, time, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ActivityLog
from ..validation import ValidationError, clamp_pagination, pagination_meta
from .company_service import owner_scope, apply_owner_scope
from imeitrack.time_utils import parse_iso_date


ACTIONS = ("create", "update", "delete", "login")
ENTITY_TYPES = ("imei", "sold", "brand", "staff", "admin", "profile", "auth")

DEFAULT_ACTIVITY_PAGE_SIZE = 50


def client_ip(req) -> str | None:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    if req is None:
        return None
    forwarded = req.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = (req.headers.get("X-Real-IP") or "").strip()
    if real_ip:
        return real_ip
    return req.remote_addr


def record_activity(
    principal,
    action: str,
    entity_type: str | None,
    entity_id: int | None,
    description: str,
    metadata: dict | None = None,
    ip_address: str | None = None,
) -> ActivityLog | None:
    """
    Append an activity row for principal.

    Returns the row, or None when nothing was written (superadmin, or the
    write failed).
    """
    if principal is None or principal.is_superadmin:
        return None

    entry = ActivityLog(
        user_id=principal.id,
        user_name=principal.name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        details=metadata,
        ip_address=ip_address,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to write activity log (%s %s)", action, entity_type)
        return None
    return entry


# Description builders, one per audited operation.

def log_imei_create(principal, imei_id, imei, ip_address=None):
    return record_activity(principal, "create", "imei", imei_id, f"Created IMEI record: {imei}", ip_address=ip_address)


def log_imei_update(principal, imei_id, imei, changes, ip_address=None):
    return record_activity(
        principal, "update", "imei", imei_id, f"Updated IMEI record: {imei}",
        metadata={"changes": changes}, ip_address=ip_address,
    )


def log_imei_delete(principal, imei_id, imei, ip_address=None):
    return record_activity(principal, "delete", "imei", imei_id, f"Deleted IMEI record: {imei}", ip_address=ip_address)


def log_sold_create(principal, sold_id, imei, buyer_name, ip_address=None):
    return record_activity(
        principal, "create", "sold", sold_id, f"Marked IMEI {imei} as sold to {buyer_name or 'Unknown'}",
        ip_address=ip_address,
    )


def log_sold_update(principal, sold_id, imei, changes, ip_address=None):
    return record_activity(
        principal, "update", "sold", sold_id, f"Updated sold record for IMEI: {imei}",
        metadata={"changes": changes}, ip_address=ip_address,
    )


def log_sold_delete(principal, sold_id, imei, ip_address=None):
    return record_activity(principal, "delete", "sold", sold_id, f"Deleted sold record for IMEI: {imei}", ip_address=ip_address)


def log_brand_create(principal, brand_id, name, ip_address=None):
    return record_activity(principal, "create", "brand", brand_id, f"Created brand: {name}", ip_address=ip_address)


def log_brand_update(principal, brand_id, name, ip_address=None):
    return record_activity(principal, "update", "brand", brand_id, f"Updated brand: {name}", ip_address=ip_address)


def log_brand_delete(principal, brand_id, name, ip_address=None):
    return record_activity(principal, "delete", "brand", brand_id, f"Deleted brand: {name}", ip_address=ip_address)


def log_staff_create(principal, staff_id, name, ip_address=None):
    return record_activity(principal, "create", "staff", staff_id, f"Created staff member: {name}", ip_address=ip_address)


def log_staff_update(principal, staff_id, name, ip_address=None):
    return record_activity(principal, "update", "staff", staff_id, f"Updated staff member: {name}", ip_address=ip_address)


def log_staff_delete(principal, staff_id, name, ip_address=None):
    return record_activity(principal, "delete", "staff", staff_id, f"Deleted staff member: {name}", ip_address=ip_address)


def log_admin_create(principal, admin_id, name, ip_address=None):
    return record_activity(principal, "create", "admin", admin_id, f"Created admin/company: {name}", ip_address=ip_address)


def log_admin_update(principal, admin_id, name, ip_address=None):
    return record_activity(principal, "update", "admin", admin_id, f"Updated admin/company: {name}", ip_address=ip_address)


def log_admin_delete(principal, admin_id, name, ip_address=None):
    return record_activity(principal, "delete", "admin", admin_id, f"Deleted admin/company: {name}", ip_address=ip_address)


def log_login(principal, ip_address=None):
    return record_activity(principal, "login", "auth", None, "User logged in", ip_address=ip_address)


def log_profile_update(principal, changes, ip_address=None):
    return record_activity(
        principal, "update", "profile", principal.id, "Updated profile",
        metadata={"changes": changes}, ip_address=ip_address,
    )


def _activity_query(principal, *, action=None, entity_type=None, start_date=None, end_date=None):
    query = db.session.query(ActivityLog)
    query = apply_owner_scope(query, ActivityLog.user_id, owner_scope(principal))

    if action:
        query = query.filter(ActivityLog.action == action)
    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type)

    start = _parse_filter_date(start_date, "start_date")
    end = _parse_filter_date(end_date, "end_date")
    if start:
        query = query.filter(ActivityLog.created_at >= datetime.combine(start, time.min))
    if end:
        # end_date is inclusive of the whole day
        query = query.filter(ActivityLog.created_at < datetime.combine(end + timedelta(days=1), time.min))
    return query


def _parse_filter_date(value, name):
    try:
        return parse_iso_date(value) if value else None
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def list_activity(
    principal,
    *,
    action: str | None = None,
    entity_type: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page=None,
    page_size=None,
) -> dict:
    """Newest-first activity visible to principal, with total for the pager."""
    page, page_size = clamp_pagination(page, page_size, default_size=DEFAULT_ACTIVITY_PAGE_SIZE)
    query = _activity_query(
        principal,
        action=action,
        entity_type=entity_type,
        start_date=start_date,
        end_date=end_date,
    )

    total = query.count()
    rows = (
        query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [row.to_dict() for row in rows],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def count_activity(principal, **filters) -> int:
    return _activity_query(principal, **filters).count()
