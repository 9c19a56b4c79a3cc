# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- CUSTOMERS --

CUSTOMER_PERMISSIONS = [
    (
        "VIEW_CUSTOMERS",
        "View Customers",
        "Search customers and view purchase history",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "MANAGE_CUSTOMERS",
        "Manage Customers",
        "Create customers (find-or-create by phone)",
        PermissionCategory.CUSTOMERS,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_MEDICINES",
        "View Medicines",
        "Search the medicine catalog and stock levels",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_MEDICINES",
        "Manage Medicines",
        "Add catalog items and edit names and prices",
        PermissionCategory.INVENTORY,
    ),
    (
        "RESTOCK_MEDICINES",
        "Restock Medicines",
        "Increase stock and update expiry on intake",
        PermissionCategory.INVENTORY,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "VIEW_SALES",
        "View Sales",
        "List sales and view invoices",
        PermissionCategory.SALES,
    ),
    (
        "CREATE_SALE",
        "Create Sale",
        "Record a sale (decrements stock)",
        PermissionCategory.SALES,
    ),
]


# -- CREDITS --

CREDIT_PERMISSIONS = [
    (
        "VIEW_CREDITS",
        "View Credits",
        "List outstanding and settled credit records",
        PermissionCategory.CREDITS,
    ),
    (
        "RECORD_CREDIT_PAYMENT",
        "Record Credit Payment",
        "Record a payment against a credit record",
        PermissionCategory.CREDITS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View revenue, credit and stock KPIs",
        PermissionCategory.REPORTS,
    ),
    (
        "EXPORT_DATA",
        "Export Data",
        "Download sales reports as CSV or XLSX",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_ACTIVITY",
        "View Activity",
        "View the shop activity log",
        PermissionCategory.REPORTS,
    ),
]


# -- SHOP --

SHOP_PERMISSIONS = [
    (
        "VIEW_SETTINGS",
        "View Settings",
        "View store profile and invoice settings",
        PermissionCategory.SHOP,
    ),
    (
        "MANAGE_SETTINGS",
        "Manage Settings",
        "Edit store profile and invoice settings",
        PermissionCategory.SHOP,
    ),
    (
        "MANAGE_SUBSCRIPTION",
        "Manage Subscription",
        "Start the trial or upgrade the subscription plan",
        PermissionCategory.SHOP,
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create staff accounts and change roles within the shop",
        PermissionCategory.SHOP,
    ),
]


# -- PLATFORM --

PLATFORM_PERMISSIONS = [
    (
        "MANAGE_SHOPS",
        "Manage Shops",
        "List every tenant and suspend shops (superadmin only)",
        PermissionCategory.PLATFORM,
    ),
]


PERMISSION_DEFINITIONS = (
    CUSTOMER_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + SALES_PERMISSIONS
    + CREDIT_PERMISSIONS
    + REPORT_PERMISSIONS
    + SHOP_PERMISSIONS
    + PLATFORM_PERMISSIONS
)
