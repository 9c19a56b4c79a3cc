from .tenancy import Shop, SUBSCRIPTION_TYPES, SUBSCRIPTION_STATUSES
from .auth import User, ROLES
from .customers import Customer
from .inventory import Medicine
from .sales import Sale, SaleItem, Credit
from .settings import Setting, DEFAULT_STORE_NAME
from .documents import DocumentSequence
from .security import SecurityEvent
from .activity import ActivityLog, ACTIVITY_ACTIONS

__all__ = [
    'Shop', 'SUBSCRIPTION_TYPES', 'SUBSCRIPTION_STATUSES',
    'User', 'ROLES',
    'Customer',
    'Medicine',
    'Sale', 'SaleItem', 'Credit',
    'Setting', 'DEFAULT_STORE_NAME',
    'DocumentSequence',
    'SecurityEvent',
    'ActivityLog', 'ACTIVITY_ACTIONS',
]
