# Overview: Menu permission definitions.
# Each permission is defined as: (code, name, description, landing_path)
# Order matters: it is the priority used to pick a user's landing page.


MENU_PERMISSIONS = [
    (
        "dashboard",
        "Dashboard",
        "Add, scan and browse IMEI purchase records",
        "/dashboard",
    ),
    (
        "brands",
        "Brands",
        "Create, rename and deactivate phone brands",
        "/brands",
    ),
    (
        "stock",
        "Stock",
        "View available/sold stock and stock statistics",
        "/stock",
    ),
    (
        "reports",
        "Reports",
        "Sales trends, brand distribution and profit reports",
        "/reports",
    ),
    (
        "activity",
        "Activity",
        "Audit trail of create/update/delete/login actions",
        "/activity",
    ),
    (
        "profile",
        "Profile",
        "Edit own name, email and password",
        "/profile",
    ),
    (
        "staff",
        "Staff",
        "Manage staff accounts of the company",
        "/staff",
    ),
]

MENU_PERMISSION_CODES = tuple(perm[0] for perm in MENU_PERMISSIONS)
