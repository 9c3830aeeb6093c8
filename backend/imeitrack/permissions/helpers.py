# Overview: Utility functions for permission lookups, validation and normalization.

from __future__ import annotations

import json

from .definitions import MENU_PERMISSIONS, MENU_PERMISSION_CODES
from .roles import Role


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in MENU_PERMISSIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "path": perm[3],
            }
    return None


def normalize_permissions(raw) -> dict[str, bool]:
    """
    Turn whatever is stored in users.permissions into {code: bool}.

    Legacy rows hold NULL, arrays, plain JSON strings, or JSON that was
    encoded twice. Anything that does not end up as an object yields {}.
    Unknown keys are dropped.
    """
    value = raw
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")

    # At most two decodes: the second handles double-encoded rows.
    for _ in range(2):
        if not isinstance(value, str):
            break
        text = value.strip()
        if not text or text.lower() == "null":
            return {}
        try:
            value = json.loads(text)
        except ValueError:
            return {}

    if not isinstance(value, dict):
        return {}

    # Only the JSON boolean true grants a menu; "false", 1 and "yes" do not.
    return {code: value[code] is True for code in MENU_PERMISSION_CODES if code in value}


def expand_permissions(raw) -> dict[str, bool]:
    """Normalize and fill every known flag; this is the only shape ever written."""
    normalized = normalize_permissions(raw)
    return {code: normalized.get(code, False) for code in MENU_PERMISSION_CODES}


def has_menu_permission(role: str, permissions: dict, code: str) -> bool:
    if role == Role.SUPERADMIN:
        return True
    return permissions.get(code) is True


def first_available_page(role: str, permissions: dict) -> str:
    if role == Role.SUPERADMIN:
        return "/admin"
    for code, _name, _description, path in MENU_PERMISSIONS:
        if permissions.get(code) is True:
            return path
    return "/dashboard"
