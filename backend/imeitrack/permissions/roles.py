# Overview: Role constants for the three-tier hierarchy (superadmin -> admin/company -> staff).


class Role:
    """Account roles. A company is an admin plus the staff that admin created."""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    STAFF = "staff"


ROLES = (Role.SUPERADMIN, Role.ADMIN, Role.STAFF)
