# Overview: Service-layer operations for brands; the picklist shared by superadmin and scoped per company.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Brand
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    clamp_pagination,
    pagination_meta,
    validate_payload,
)
from . import activity_service
from .access_service import authorize, require_access
from .company_service import apply_owner_scope, owner_scope


BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name", "is_active"},
    required_on_create={"name"},
)

DEFAULT_BRAND_PAGE_SIZE = 100


def _brand_query(principal, *, q: str | None = None, active_only: bool = True):
    # Superadmin brands (created_by NULL) are visible to every company.
    query = apply_owner_scope(
        db.session.query(Brand),
        Brand.created_by,
        owner_scope(principal),
        include_ownerless=True,
    )
    q = (q or "").strip()
    if q:
        query = query.filter(Brand.name.ilike(f"%{q}%"))
    if active_only:
        query = query.filter(Brand.is_active.is_(True))
    return query


def list_brands(principal, *, q: str | None = None, active_only: bool = True, page=None, page_size=None) -> dict:
    page, page_size = clamp_pagination(page, page_size, default_size=DEFAULT_BRAND_PAGE_SIZE)
    query = _brand_query(principal, q=q, active_only=active_only)

    total = query.count()
    brands = (
        query.order_by(Brand.name.asc(), Brand.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [b.to_dict() for b in brands],
        "total": total,
        "pagination": pagination_meta(page, page_size, total),
    }


def count_brands(principal, *, q: str | None = None, active_only: bool = True) -> int:
    return _brand_query(principal, q=q, active_only=active_only).count()


def list_active_brands(principal) -> list[dict]:
    """Every active brand in scope, unpaginated, for dropdowns."""
    brands = _brand_query(principal).order_by(Brand.name.asc()).all()
    return [b.to_dict() for b in brands]


def _load(brand_id: int) -> Brand:
    brand = db.session.get(Brand, brand_id)
    if brand is None:
        raise NotFoundError("Brand not found")
    return brand


def _conflict(principal, name: str) -> ConflictError:
    existing = db.session.query(Brand).filter(Brand.name == name).first()
    if existing is None:
        return ConflictError("Brand already exists")
    if not authorize(principal, existing.created_by, "read"):
        return ConflictError("Brand already exists", access_denied=True)
    return ConflictError("Brand already exists", existing_id=existing.id)


def create_brand(principal, payload: dict, *, ip_address: str | None = None) -> dict:
    patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=False)

    brand = Brand(**patch)
    brand.created_by = None if principal.is_superadmin else principal.id

    db.session.add(brand)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise _conflict(principal, patch["name"])

    activity_service.log_brand_create(principal, brand.id, brand.name, ip_address=ip_address)
    return brand.to_dict()


def update_brand(principal, brand_id: int, payload: dict, *, ip_address: str | None = None) -> dict:
    brand = _load(brand_id)
    require_access(principal, brand.created_by, "update")

    patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=True)
    for key, value in patch.items():
        setattr(brand, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise _conflict(principal, patch.get("name", brand.name))

    activity_service.log_brand_update(principal, brand.id, brand.name, ip_address=ip_address)
    return brand.to_dict()


def delete_brand(principal, brand_id: int, *, ip_address: str | None = None) -> None:
    """
    Delete a brand.

    IMEI rows store the brand as text, so they keep showing the old name.
    """
    brand = _load(brand_id)
    require_access(principal, brand.created_by, "delete")

    name = brand.name
    db.session.delete(brand)
    db.session.commit()

    activity_service.log_brand_delete(principal, brand_id, name, ip_address=ip_address)
