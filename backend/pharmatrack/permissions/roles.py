# Overview: Capability policy: which permission codes each role holds.

from .definitions import PERMISSION_DEFINITIONS


_ALL_CODES = [perm[0] for perm in PERMISSION_DEFINITIONS]

DEFAULT_ROLE_PERMISSIONS = {
    "superadmin": list(_ALL_CODES),
    "admin": [code for code in _ALL_CODES if code != "MANAGE_SHOPS"],
    "staff": [
        "VIEW_CUSTOMERS",
        "MANAGE_CUSTOMERS",
        "VIEW_MEDICINES",
        "RESTOCK_MEDICINES",
        "VIEW_SALES",
        "CREATE_SALE",
        "VIEW_CREDITS",
        "RECORD_CREDIT_PAYMENT",
        "VIEW_DASHBOARD",
        "VIEW_SETTINGS",
    ],
}
