# Overview: Service-layer operations for reporting; sales trend, brand mix and profit aggregates.

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import case, func

from ..extensions import db
from ..models import ImeiRecord, SoldRecord
from ..validation import ValidationError
from .company_service import apply_owner_scope, owner_scope
from imeitrack.time_utils import parse_iso_date, utcnow


TOP_N = 10
TREND_DAYS = 30


def _money(value) -> float:
    return float(value) if value is not None else 0.0


def _parse_range(start: str | None, end: str | None) -> tuple[date | None, date | None]:
    try:
        start_d = parse_iso_date(start) if start else None
        end_d = parse_iso_date(end) if end else None
    except ValueError:
        raise ValidationError("start_date/end_date must be dates (YYYY-MM-DD)")
    if start_d and end_d and start_d > end_d:
        raise ValidationError("start_date must not be after end_date")
    return start_d, end_d


def _year_ago(today: date) -> date:
    try:
        return today.replace(year=today.year - 1)
    except ValueError:
        # Feb 29
        return today.replace(year=today.year - 1, day=28)


def _date_window(column, start: date | None, end: date | None, default_start: date | None):
    conditions = []
    if start:
        conditions.append(column >= start)
    if end:
        conditions.append(column <= end)
    if not start and not end and default_start is not None:
        conditions.append(column >= default_start)
    return conditions


def sales_trend(principal, start: date | None = None, end: date | None = None) -> list[dict]:
    """Daily sold count and amount; last 30 days unless a range is given."""
    today = utcnow().date()
    day = func.strftime("%Y-%m-%d", SoldRecord.sold_date)

    query = db.session.query(
        day.label("date"),
        func.count(SoldRecord.id).label("count"),
        func.coalesce(func.sum(SoldRecord.sold_amount), 0).label("total_amount"),
    ).join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        SoldRecord.sold_date.isnot(None),
        *_date_window(SoldRecord.sold_date, start, end, today - timedelta(days=TREND_DAYS)),
    )
    query = apply_owner_scope(query, SoldRecord.created_by, owner_scope(principal))

    rows = query.group_by(day).order_by(day).all()
    return [
        {"date": row.date, "count": int(row.count), "total_amount": _money(row.total_amount)}
        for row in rows
    ]


def brand_distribution(principal, start: date | None = None, end: date | None = None) -> list[dict]:
    """Top brands by number of purchased handsets, with purchase/sold totals."""
    purchase = func.coalesce(func.sum(ImeiRecord.amount), 0)
    sold = func.coalesce(func.sum(SoldRecord.sold_amount), 0)

    query = db.session.query(
        ImeiRecord.brand.label("brand"),
        func.count(ImeiRecord.id).label("count"),
        purchase.label("total_purchase"),
        sold.label("total_sold"),
    ).outerjoin(SoldRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        ImeiRecord.brand.isnot(None),
        *_date_window(ImeiRecord.date, start, end, None),
    )
    query = apply_owner_scope(query, ImeiRecord.created_by, owner_scope(principal))

    rows = query.group_by(ImeiRecord.brand).order_by(func.count(ImeiRecord.id).desc(), ImeiRecord.brand.asc()).limit(TOP_N).all()
    return [
        {
            "brand": row.brand,
            "count": int(row.count),
            "total_purchase": _money(row.total_purchase),
            "total_sold": _money(row.total_sold),
            "profit": round(_money(row.total_sold) - _money(row.total_purchase), 2),
        }
        for row in rows
    ]


def monthly_sales(principal, start: date | None = None, end: date | None = None) -> list[dict]:
    """Sold count, revenue and profit per month; last 12 months by default."""
    today = utcnow().date()
    month = func.strftime("%Y-%m", SoldRecord.sold_date)
    profit = func.sum(func.coalesce(SoldRecord.sold_amount, 0) - func.coalesce(ImeiRecord.amount, 0))

    query = db.session.query(
        month.label("month"),
        func.count(SoldRecord.id).label("count"),
        func.coalesce(func.sum(SoldRecord.sold_amount), 0).label("total_amount"),
        func.coalesce(profit, 0).label("profit"),
    ).join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        SoldRecord.sold_date.isnot(None),
        *_date_window(SoldRecord.sold_date, start, end, _year_ago(today)),
    )
    query = apply_owner_scope(query, SoldRecord.created_by, owner_scope(principal))

    rows = query.group_by(month).order_by(month).all()
    return [
        {
            "month": row.month,
            "count": int(row.count),
            "total_amount": _money(row.total_amount),
            "profit": _money(row.profit),
        }
        for row in rows
    ]


def top_brands(principal, start: date | None = None, end: date | None = None) -> list[dict]:
    """Brands ranked by number of handsets sold."""
    query = db.session.query(
        ImeiRecord.brand.label("brand"),
        func.count(SoldRecord.id).label("sold_count"),
        func.coalesce(func.sum(SoldRecord.sold_amount), 0).label("total_revenue"),
    ).join(ImeiRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        ImeiRecord.brand.isnot(None),
        *_date_window(SoldRecord.sold_date, start, end, None),
    )
    query = apply_owner_scope(query, SoldRecord.created_by, owner_scope(principal))

    rows = query.group_by(ImeiRecord.brand).order_by(func.count(SoldRecord.id).desc(), ImeiRecord.brand.asc()).limit(TOP_N).all()
    return [
        {"brand": row.brand, "sold_count": int(row.sold_count), "total_revenue": _money(row.total_revenue)}
        for row in rows
    ]


def comparison(principal, start: date | None = None, end: date | None = None) -> list[dict]:
    """Purchase spend vs sales per purchase month."""
    today = utcnow().date()
    month = func.strftime("%Y-%m", ImeiRecord.date)
    sales = func.sum(case((SoldRecord.id.isnot(None), func.coalesce(SoldRecord.sold_amount, 0)), else_=0))

    query = db.session.query(
        month.label("month"),
        func.coalesce(func.sum(ImeiRecord.amount), 0).label("total_purchase"),
        func.coalesce(sales, 0).label("total_sales"),
    ).outerjoin(SoldRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        ImeiRecord.date.isnot(None),
        *_date_window(ImeiRecord.date, start, end, _year_ago(today)),
    )
    query = apply_owner_scope(query, ImeiRecord.created_by, owner_scope(principal))

    rows = query.group_by(month).order_by(month).all()
    return [
        {"month": row.month, "total_purchase": _money(row.total_purchase), "total_sales": _money(row.total_sales)}
        for row in rows
    ]


def statistics(principal, start: date | None = None, end: date | None = None) -> dict:
    """Totals over IMEIs in scope (purchase date window), sold side joined in."""
    sold_amount = case((SoldRecord.id.isnot(None), func.coalesce(SoldRecord.sold_amount, 0)), else_=0)
    profit = case(
        (SoldRecord.id.isnot(None), func.coalesce(SoldRecord.sold_amount, 0) - func.coalesce(ImeiRecord.amount, 0)),
        else_=0,
    )

    query = db.session.query(
        func.count(func.distinct(ImeiRecord.id)).label("total_items"),
        func.count(func.distinct(case((SoldRecord.id.isnot(None), ImeiRecord.id)))).label("sold_items"),
        func.coalesce(func.sum(ImeiRecord.amount), 0).label("total_purchase"),
        func.coalesce(func.sum(sold_amount), 0).label("total_sales"),
        func.coalesce(func.sum(profit), 0).label("total_profit"),
    ).outerjoin(SoldRecord, SoldRecord.imei_id == ImeiRecord.id).filter(
        *_date_window(ImeiRecord.date, start, end, None),
    )
    query = apply_owner_scope(query, ImeiRecord.created_by, owner_scope(principal))

    row = query.one()
    return {
        "total_items": int(row.total_items or 0),
        "sold_items": int(row.sold_items or 0),
        "total_purchase": _money(row.total_purchase),
        "total_sales": _money(row.total_sales),
        "total_profit": _money(row.total_profit),
    }


def reports(principal, start_date: str | None = None, end_date: str | None = None) -> dict:
    start, end = _parse_range(start_date, end_date)
    return {
        "start_date": start.isoformat() if start else None,
        "end_date": end.isoformat() if end else None,
        "sales_trend": sales_trend(principal, start, end),
        "brand_distribution": brand_distribution(principal, start, end),
        "monthly_sales": monthly_sales(principal, start, end),
        "top_brands": top_brands(principal, start, end),
        "comparison": comparison(principal, start, end),
        "statistics": statistics(principal, start, end),
    }
