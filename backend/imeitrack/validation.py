from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from imeitrack.time_utils import parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Largest amount accepted for purchase/sold prices (fits Numeric(12, 2)).
MAX_AMOUNT = Decimal("9999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """
    409-level uniqueness conflict (duplicate IMEI, brand name, email).

    existing_id lets the caller offer "edit the existing record" instead of
    a plain rejection; access_denied is set when that record belongs to
    someone the caller may not see, in which case existing_id is withheld.
    """

    def __init__(self, message: str, *, existing_id: int | None = None, access_denied: bool = False):
        super().__init__(message)
        self.existing_id = existing_id
        self.access_denied = access_denied

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.access_denied:
            body["access_denied"] = True
        elif self.existing_id is not None:
            body["existing_id"] = self.existing_id
        return body


class NotFoundError(LookupError):
    """404-level: the record id does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        raise ValidationError(f"{col.key} must be an integer")

    # Money: accept numbers or numeric strings, blank means "not set"
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                return None
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"{col.key} cannot exceed {MAX_AMOUNT}")
        return amount.quantize(Decimal("0.01"))

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, Date):
        if isinstance(value, (date, datetime)):
            return parse_iso_date(value)
        try:
            return parse_iso_date(str(value))
        except ValueError:
            raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    if isinstance(coltype, JSON):
        return value

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Blank strings on nullable text columns become None, matching how the
    stock forms submit untouched optional inputs.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload or payload[f] in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if val is None and not col.nullable:
            raise ValidationError(f"{k} cannot be null")

        patch[k] = val

    return patch


def enforce_amount(patch: dict, field: str) -> None:
    amount = patch.get(field)
    if amount is None:
        return
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")


def enforce_rules_imei(patch: dict) -> None:
    if "imei" in patch:
        imei = patch["imei"]
        if not imei:
            raise ValidationError("IMEI number is required")
        if any(ch.isspace() for ch in imei):
            raise ValidationError("IMEI must not contain whitespace")
    enforce_amount(patch, "amount")


def enforce_rules_sold(patch: dict) -> None:
    enforce_amount(patch, "sold_amount")


def clamp_pagination(page: Any, page_size: Any, *, default_size: int, max_size: int = 10000) -> tuple[int, int]:
    """
    Clamp page/page_size to sane positive integers.

    Garbage never raises: page falls back to 1 and page_size to default_size.
    """
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        page_size = default_size

    page = max(page, 1)
    if page_size < 1:
        page_size = default_size
    return page, min(page_size, max_size)


def pagination_meta(page: int, page_size: int, total: int) -> dict:
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1
    return {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def _jsonable(value: Any):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def collect_changes(obj, patch: dict) -> dict:
    """
    {field: {"old": ..., "new": ...}} for patch fields whose value differs.

    Values are converted to JSON-friendly types so the result can be stored
    in an activity log's metadata column.
    """
    changes = {}
    for key, new in patch.items():
        old = getattr(obj, key)
        if old != new:
            changes[key] = {"old": _jsonable(old), "new": _jsonable(new)}
    return changes
