"""
Central constants for the DealerDesk application.
"""
from __future__ import annotations

# Closed role set; anything outside it is denied at the authorization boundary.
ROLE_ADMIN = "admin"
ROLE_TERRITORY_SALES_MANAGER = "territory_sales_manager"
ROLES = frozenset({"admin", "territory_sales_manager", "dealer", "finance", "accountant", "employee"})

ROLE_LABELS = {
    "admin": "Admin",
    "territory_sales_manager": "Territory Sales Manager",
    "dealer": "Dealer",
    "finance": "Finance",
    "accountant": "Accountant",
    "employee": "Employee",
}

# Privileged action kinds (one per endpoint)
ACTION_EMAIL_CHANGE = "email_change"
ACTION_PASSWORD_RESET = "password_reset"
ACTION_ROLE_CHANGE = "role_change"

# Audit log actions
AUDIT_EMAIL_CHANGED = "email_changed"
AUDIT_EMAIL_CHANGE_FAILED = "email_change_failed"
AUDIT_PASSWORD_RESET = "password_reset"
AUDIT_PASSWORD_RESET_FAILED = "password_reset_failed"
AUDIT_ROLE_CHANGED = "role_changed"
AUDIT_ROLE_CHANGE_FAILED = "role_change_failed"

ENTITY_USER = "user"
ENTITY_ROLE = "role"

DEFAULT_DUPLICATE_GUARD_WINDOW_SECONDS = 20.0
MIN_PASSWORD_LENGTH = 8
