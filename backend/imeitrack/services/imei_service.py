# Overview: Service-layer operations for IMEI purchase records; scoped reads, guarded writes, duplicate detection.

"""
IMEI Record Service

WHY: An ImeiRecord is the unit of stock. Who may see or change it depends on
created_by (see company_service.owner_scope and access_service.authorize).

RULES:
- Lists and counts share one query builder, so "total" always matches the
  rows a page can reach
- Create is attributed to the caller (superadmin-created rows are ownerless)
- Duplicates are found by the unique constraint after the INSERT, never by a
  pre-read; the conflict carries the existing id only if the caller may see it
- Update/Delete: load, 404 if missing, guard, apply, commit, audit
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..extensions import db
from ..models import ImeiRecord, SoldRecord, User
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    clamp_pagination,
    collect_changes,
    enforce_rules_imei,
    pagination_meta,
    validate_payload,
)
from . import activity_service
from .access_service import authorize, require_access
from .company_service import apply_owner_scope, owner_scope
from imeitrack.time_utils import parse_iso_date


IMEI_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"imei", "purchase", "amount", "date", "brand", "model", "color", "ram", "storage"},
    required_on_create={"imei"},
)

# The IMEI itself is the record's identity and cannot be edited.
IMEI_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"purchase", "amount", "date", "brand", "model", "color", "ram", "storage"},
)

STATUSES = ("available", "sold", "all")
RECENT_IMEI_LIMIT = 100


class DuplicateImeiError(ConflictError):
    """The IMEI is already registered (possibly by another company)."""


def _creator_of(principal) -> int | None:
    return None if principal.is_superadmin else principal.id


def _parse_amount(value, name: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a number")
    return amount


def _parse_date(value, name: str):
    try:
        return parse_iso_date(value) if value else None
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def _record_query(principal, filters: dict | None = None):
    """
    Base query: (ImeiRecord, SoldRecord|None, creator name) rows in scope.

    The sold join is 1:1 (uq_sold_records_imei_id), so it never multiplies
    rows and count() stays exact.
    """
    filters = filters or {}
    creator = aliased(User)

    query = (
        db.session.query(ImeiRecord, SoldRecord, creator.name.label("created_by_name"))
        .outerjoin(SoldRecord, SoldRecord.imei_id == ImeiRecord.id)
        .outerjoin(creator, creator.id == ImeiRecord.created_by)
    )
    query = apply_owner_scope(query, ImeiRecord.created_by, owner_scope(principal))

    q = (filters.get("q") or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(db.or_(
            ImeiRecord.imei.ilike(like),
            ImeiRecord.purchase.ilike(like),
            ImeiRecord.brand.ilike(like),
            ImeiRecord.model.ilike(like),
            ImeiRecord.color.ilike(like),
        ))

    for field in ("brand", "color", "ram", "storage"):
        value = filters.get(field)
        if value:
            query = query.filter(getattr(ImeiRecord, field) == value)

    purchase_name = (filters.get("purchase_name") or "").strip()
    if purchase_name:
        query = query.filter(ImeiRecord.purchase.ilike(f"%{purchase_name}%"))

    status = filters.get("status") or "all"
    if status not in STATUSES:
        raise ValidationError("status must be one of: available, sold, all")
    if status == "available":
        query = query.filter(SoldRecord.id.is_(None))
    elif status == "sold":
        query = query.filter(SoldRecord.id.isnot(None))

    date_from = _parse_date(filters.get("purchase_date_from"), "purchase_date_from")
    date_to = _parse_date(filters.get("purchase_date_to"), "purchase_date_to")
    if date_from:
        query = query.filter(ImeiRecord.date >= date_from)
    if date_to:
        query = query.filter(ImeiRecord.date <= date_to)

    sold_from = _parse_date(filters.get("sold_date_from"), "sold_date_from")
    sold_to = _parse_date(filters.get("sold_date_to"), "sold_date_to")
    if sold_from:
        query = query.filter(SoldRecord.sold_date >= sold_from)
    if sold_to:
        query = query.filter(SoldRecord.sold_date <= sold_to)

    amount_min = _parse_amount(filters.get("purchase_amount_min"), "purchase_amount_min")
    amount_max = _parse_amount(filters.get("purchase_amount_max"), "purchase_amount_max")
    if amount_min is not None:
        query = query.filter(ImeiRecord.amount >= amount_min)
    if amount_max is not None:
        query = query.filter(ImeiRecord.amount <= amount_max)

    sold_min = _parse_amount(filters.get("sold_amount_min"), "sold_amount_min")
    sold_max = _parse_amount(filters.get("sold_amount_max"), "sold_amount_max")
    if sold_min is not None:
        query = query.filter(SoldRecord.sold_amount >= sold_min)
    if sold_max is not None:
        query = query.filter(SoldRecord.sold_amount <= sold_max)

    return query


def serialize_row(record: ImeiRecord, sold: SoldRecord | None, created_by_name: str | None = None) -> dict:
    """IMEI fields with the sold fields merged in (None when still in stock)."""
    data = record.to_dict()
    sold_data = sold.to_dict() if sold else {}
    data.update({
        "created_by_name": created_by_name,
        "status": "sold" if sold else "available",
        "sold_record_id": sold_data.get("id"),
        "sold_name": sold_data.get("sold_name"),
        "sold_amount": sold_data.get("sold_amount"),
        "sold_date": sold_data.get("sold_date"),
        "store": sold_data.get("store"),
    })
    return data


def list_imei_records(principal, filters: dict | None = None, page=None, page_size=None, *, default_size: int = 20, max_size: int = 10000) -> dict:
    page, page_size = clamp_pagination(page, page_size, default_size=default_size, max_size=max_size)
    query = _record_query(principal, filters)

    total = query.count()
    rows = (
        query.order_by(ImeiRecord.created_at.desc(), ImeiRecord.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [serialize_row(record, sold, name) for record, sold, name in rows],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def count_imei_records(principal, filters: dict | None = None) -> int:
    return _record_query(principal, filters).count()


def iter_imei_rows(principal, filters: dict | None = None, *, limit: int = 10000):
    """Scoped (record, sold) pairs, newest first; used by the CSV export."""
    rows = (
        _record_query(principal, filters)
        .order_by(ImeiRecord.created_at.desc(), ImeiRecord.id.desc())
        .limit(limit)
        .all()
    )
    return [(record, sold) for record, sold, _name in rows]


def _load(record_id: int) -> ImeiRecord:
    record = db.session.get(ImeiRecord, record_id)
    if record is None:
        raise NotFoundError("Record not found")
    return record


def _latest_sold(record: ImeiRecord) -> SoldRecord | None:
    return record.sold_records[0] if record.sold_records else None


def get_imei_record(principal, record_id: int) -> dict:
    record = _load(record_id)
    require_access(principal, record.created_by, "read")

    creator = db.session.get(User, record.created_by) if record.created_by else None
    return serialize_row(record, _latest_sold(record), creator.name if creator else None)


def create_imei_record(principal, payload: dict, *, ip_address: str | None = None) -> dict:
    """
    Insert a new IMEI record owned by the caller.

    Raises:
        ValidationError: missing/blank imei, bad amounts or dates
        DuplicateImeiError: imei already registered
    """
    patch = validate_payload(model=ImeiRecord, payload=payload, policy=IMEI_CREATE_POLICY, partial=False)
    enforce_rules_imei(patch)

    record = ImeiRecord(**patch)
    record.created_by = _creator_of(principal)

    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise _duplicate_error(principal, patch["imei"])

    activity_service.log_imei_create(principal, record.id, record.imei, ip_address=ip_address)
    return serialize_row(record, None)


def _duplicate_error(principal, imei: str) -> DuplicateImeiError:
    existing = db.session.query(ImeiRecord).filter(ImeiRecord.imei == imei).first()
    if existing is None:
        # Constraint fired but the row is gone again (deleted concurrently).
        return DuplicateImeiError("IMEI already exists")
    if not authorize(principal, existing.created_by, "read"):
        return DuplicateImeiError("IMEI already exists", access_denied=True)
    return DuplicateImeiError("IMEI already exists", existing_id=existing.id)


def update_imei_record(principal, record_id: int, payload: dict, *, ip_address: str | None = None) -> dict:
    record = _load(record_id)
    require_access(principal, record.created_by, "update")

    patch = validate_payload(model=ImeiRecord, payload=payload, policy=IMEI_UPDATE_POLICY, partial=True)
    enforce_rules_imei(patch)

    changes = collect_changes(record, patch)
    for key, value in patch.items():
        setattr(record, key, value)
    db.session.commit()

    activity_service.log_imei_update(principal, record.id, record.imei, changes, ip_address=ip_address)
    return serialize_row(record, _latest_sold(record))


def delete_imei_record(principal, record_id: int, *, ip_address: str | None = None) -> None:
    """Delete the record and, through the cascade, its sold record."""
    record = _load(record_id)
    require_access(principal, record.created_by, "delete")

    imei = record.imei
    db.session.delete(record)
    db.session.commit()

    activity_service.log_imei_delete(principal, record_id, imei, ip_address=ip_address)


def check_imei(principal, imei) -> dict:
    """
    Report whether an IMEI is already registered.

    Read-only and idempotent. Callers who may not see the record learn only
    that it exists.
    """
    if not isinstance(imei, str) or not imei.strip():
        raise ValidationError("IMEI is required")

    record = db.session.query(ImeiRecord).filter(ImeiRecord.imei == imei.strip()).first()
    if record is None:
        return {"exists": False}

    if not authorize(principal, record.created_by, "read"):
        owner = "another company" if principal.is_admin else "another user"
        return {
            "exists": True,
            "record": None,
            "access_denied": True,
            "message": f"This IMEI belongs to {owner}",
        }

    sold = _latest_sold(record)
    return {
        "exists": True,
        "record": record.to_dict(),
        "already_sold": sold is not None,
        "sold_record": sold.to_dict() if sold else None,
    }


def list_recent_imeis(principal, limit: int = RECENT_IMEI_LIMIT) -> list[str]:
    """Distinct IMEI strings in scope, for pickers."""
    query = db.session.query(ImeiRecord.imei).distinct()
    query = apply_owner_scope(query, ImeiRecord.created_by, owner_scope(principal))
    return [row.imei for row in query.order_by(ImeiRecord.imei.desc()).limit(limit).all()]
