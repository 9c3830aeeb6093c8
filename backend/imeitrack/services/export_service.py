# Overview: Service-layer CSV export of IMEI records in the caller's scope.

from __future__ import annotations

import csv
import io

from . import imei_service
from .sold_service import profit_of
from imeitrack.time_utils import to_display_date, utcnow


EXPORT_LIMIT = 10000

EXPORT_HEADERS = [
    "IMEI",
    "Purchase Name",
    "Purchase Amount",
    "Purchase Date",
    "Brand",
    "Model",
    "Color",
    "RAM",
    "Storage",
    "Sold Name",
    "Sold Amount",
    "Sold Date",
    "Store",
    "Profit",
    "Created At",
]


def _amount(value) -> str:
    if value is None or value == 0:
        return ""
    return f"{float(value):.2f}"


def export_filename(today=None) -> str:
    today = today or utcnow().date()
    return f"imei-records-{today.isoformat()}.csv"


def export_imei_csv(principal, q: str | None = None) -> str:
    """
    CSV of up to EXPORT_LIMIT scoped IMEI records, newest first.

    Profit is filled only when a positive sold amount exists. Dates are
    DD/MM/YYYY.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)

    for record, sold in imei_service.iter_imei_rows(principal, {"q": q}, limit=EXPORT_LIMIT):
        profit = profit_of(record, sold)
        writer.writerow([
            record.imei,
            record.purchase or "",
            _amount(record.amount),
            to_display_date(record.date),
            record.brand or "",
            record.model or "",
            record.color or "",
            record.ram or "",
            record.storage or "",
            (sold.sold_name or "") if sold else "",
            _amount(sold.sold_amount) if sold else "",
            to_display_date(sold.sold_date) if sold else "",
            (sold.store or "") if sold else "",
            f"{profit:.2f}" if profit is not None else "",
            to_display_date(record.created_at.date()) if record.created_at else "",
        ])

    return buffer.getvalue()
