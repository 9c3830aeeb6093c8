# Overview: Service-layer statistics over IMEI stock; counts and sums within the caller's scope.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import ImeiRecord, SoldRecord
from .company_service import apply_owner_scope, owner_scope


def _to_float(value) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)))


def stock_statistics(principal) -> dict:
    """
    Stock totals for the principal.

    IMEI counts and the purchase total are scoped on the IMEI's created_by,
    the sold total on the sold record's created_by. total_count always equals
    imei_service.count_imei_records(principal).

    The scopes diverge for superadmin sales: a company IMEI sold by a
    superadmin counts in sold_count while its amount stays out of
    total_sold_amount.
    """
    scope = owner_scope(principal)

    imei_base = apply_owner_scope(db.session.query(ImeiRecord.id), ImeiRecord.created_by, scope)
    total_count = imei_base.count()

    available_count = apply_owner_scope(
        db.session.query(ImeiRecord.id)
        .outerjoin(SoldRecord, SoldRecord.imei_id == ImeiRecord.id)
        .filter(SoldRecord.id.is_(None)),
        ImeiRecord.created_by,
        scope,
    ).count()

    sold_count = apply_owner_scope(
        db.session.query(func.count(func.distinct(SoldRecord.imei_id)))
        .join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id),
        ImeiRecord.created_by,
        scope,
    ).scalar() or 0

    total_purchase = apply_owner_scope(
        db.session.query(func.coalesce(func.sum(ImeiRecord.amount), 0)),
        ImeiRecord.created_by,
        scope,
    ).scalar()

    total_sold = apply_owner_scope(
        db.session.query(func.coalesce(func.sum(SoldRecord.sold_amount), 0))
        .join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id),
        SoldRecord.created_by,
        scope,
    ).scalar()

    total_purchase_amount = _to_float(total_purchase)
    total_sold_amount = _to_float(total_sold)

    return {
        "total_count": int(total_count),
        "available_count": int(available_count),
        "sold_count": int(sold_count),
        "total_purchase_amount": total_purchase_amount,
        "total_sold_amount": total_sold_amount,
        "profit": round(total_sold_amount - total_purchase_amount, 2),
    }
