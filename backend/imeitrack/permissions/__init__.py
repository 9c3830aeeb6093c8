# Overview: Permission model package.
# Re-exports the role constants, the menu permission flags and their helpers.

from .roles import Role, ROLES
from .definitions import MENU_PERMISSIONS, MENU_PERMISSION_CODES
from .helpers import (
    get_permission_definition,
    normalize_permissions,
    expand_permissions,
    has_menu_permission,
    first_available_page,
)

__all__ = [
    "Role",
    "ROLES",
    "MENU_PERMISSIONS",
    "MENU_PERMISSION_CODES",
    "get_permission_definition",
    "normalize_permissions",
    "expand_permissions",
    "has_menu_permission",
    "first_available_page",
]
