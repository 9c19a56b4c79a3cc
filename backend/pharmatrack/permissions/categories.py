# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    CUSTOMERS = "CUSTOMERS"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    CREDITS = "CREDITS"
    REPORTS = "REPORTS"
    SHOP = "SHOP"
    PLATFORM = "PLATFORM"
