# Overview: Service-layer operations for sold records; marks scoped IMEIs as sold and edits resales.

"""
Sold Record Service

A SoldRecord is the resale of one ImeiRecord. Exactly one sold record may
exist per IMEI: the pre-check gives a clear message, and
uq_sold_records_imei_id catches the concurrent case.

Scope is on the sold record's own created_by, not the IMEI's: a sale belongs
to whoever recorded it.
"""

from __future__ import annotations

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
    enforce_rules_sold,
    pagination_meta,
    validate_payload,
)
from . import activity_service
from .access_service import require_access
from .company_service import apply_owner_scope, owner_scope


SOLD_POLICY = ModelValidationPolicy(
    writable_fields={"sold_name", "sold_amount", "sold_date", "store"},
)


def _money(value) -> float | None:
    return float(value) if value is not None else None


def profit_of(imei: ImeiRecord | None, sold: SoldRecord | None) -> float | None:
    """sold_amount - purchase amount, only once a positive sale price exists."""
    if sold is None or sold.sold_amount is None or sold.sold_amount <= 0:
        return None
    purchase = imei.amount if imei is not None and imei.amount is not None else 0
    return float(sold.sold_amount - purchase)


def serialize_sold(sold: SoldRecord, imei: ImeiRecord, created_by_name: str | None = None) -> dict:
    data = sold.to_dict()
    data.update({
        "imei": imei.imei,
        "brand": imei.brand,
        "model": imei.model,
        "color": imei.color,
        "ram": imei.ram,
        "storage": imei.storage,
        "purchase": imei.purchase,
        "purchase_amount": _money(imei.amount),
        "purchase_date": imei.date.isoformat() if imei.date else None,
        "profit": profit_of(imei, sold),
        "created_by_name": created_by_name,
    })
    return data


def _sold_query(principal, q: str | None = None):
    creator = aliased(User)
    query = (
        db.session.query(SoldRecord, ImeiRecord, creator.name.label("created_by_name"))
        .join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id)
        .outerjoin(creator, creator.id == SoldRecord.created_by)
    )
    query = apply_owner_scope(query, SoldRecord.created_by, owner_scope(principal))

    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(db.or_(
            ImeiRecord.imei.ilike(like),
            SoldRecord.sold_name.ilike(like),
            SoldRecord.store.ilike(like),
            ImeiRecord.brand.ilike(like),
            ImeiRecord.model.ilike(like),
        ))
    return query


def list_sold_records(principal, q: str | None = None, page=None, page_size=None, *, default_size: int = 20) -> dict:
    page, page_size = clamp_pagination(page, page_size, default_size=default_size)
    query = _sold_query(principal, q)

    total = query.count()
    rows = (
        query.order_by(SoldRecord.created_at.desc(), SoldRecord.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [serialize_sold(sold, imei, name) for sold, imei, name in rows],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def count_sold_records(principal, q: str | None = None) -> int:
    return _sold_query(principal, q).count()


def _load(sold_id: int) -> SoldRecord:
    sold = db.session.get(SoldRecord, sold_id)
    if sold is None:
        raise NotFoundError("Sold record not found")
    return sold


def get_sold_record(principal, sold_id: int) -> dict:
    sold = _load(sold_id)
    require_access(principal, sold.created_by, "read")
    creator = db.session.get(User, sold.created_by) if sold.created_by else None
    return serialize_sold(sold, sold.imei_record, creator.name if creator else None)


def _imei_id_from(payload: dict) -> int:
    raw = payload.get("imei_id")
    if raw in (None, ""):
        raise ValidationError("IMEI ID is required")
    if isinstance(raw, bool):
        raise ValidationError("imei_id must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("imei_id must be an integer")


def create_sold_record(principal, payload: dict, *, ip_address: str | None = None) -> dict:
    """
    Mark an accessible IMEI as sold.

    Raises:
        ValidationError: missing imei_id or bad fields
        NotFoundError: the IMEI does not exist
        AccessDeniedError: the IMEI is outside the caller's scope
        ConflictError: the IMEI already has a sold record
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    imei_id = _imei_id_from(payload)
    fields = {k: v for k, v in payload.items() if k != "imei_id"}
    patch = validate_payload(model=SoldRecord, payload=fields, policy=SOLD_POLICY, partial=True)
    enforce_rules_sold(patch)

    imei = db.session.get(ImeiRecord, imei_id)
    if imei is None:
        raise NotFoundError("IMEI record not found")
    require_access(principal, imei.created_by, "sell")

    existing = db.session.query(SoldRecord).filter(SoldRecord.imei_id == imei_id).first()
    if existing is not None:
        raise ConflictError("IMEI already sold", existing_id=existing.id)

    sold = SoldRecord(imei_id=imei_id, **patch)
    sold.created_by = None if principal.is_superadmin else principal.id

    db.session.add(sold)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("IMEI already sold")

    activity_service.log_sold_create(principal, sold.id, imei.imei, sold.sold_name, ip_address=ip_address)
    return serialize_sold(sold, imei)


def update_sold_record(principal, sold_id: int, payload: dict, *, ip_address: str | None = None) -> dict:
    sold = _load(sold_id)
    require_access(principal, sold.created_by, "update")

    patch = validate_payload(model=SoldRecord, payload=payload, policy=SOLD_POLICY, partial=True)
    enforce_rules_sold(patch)

    changes = collect_changes(sold, patch)
    for key, value in patch.items():
        setattr(sold, key, value)
    db.session.commit()

    imei = sold.imei_record
    activity_service.log_sold_update(principal, sold.id, imei.imei, changes, ip_address=ip_address)
    return serialize_sold(sold, imei)


def delete_sold_record(principal, sold_id: int, *, ip_address: str | None = None) -> None:
    """Remove the sale; the IMEI goes back to "available"."""
    sold = _load(sold_id)
    require_access(principal, sold.created_by, "delete")

    imei_value = sold.imei_record.imei
    db.session.delete(sold)
    db.session.commit()

    activity_service.log_sold_delete(principal, sold_id, imei_value, ip_address=ip_address)
