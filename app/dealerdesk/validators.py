from __future__ import annotations

import re
from typing import Any

from app.dealerdesk.constants import (
    ACTION_EMAIL_CHANGE,
    ACTION_PASSWORD_RESET,
    ACTION_ROLE_CHANGE,
    MIN_PASSWORD_LENGTH,
    ROLE_ADMIN,
    ROLE_TERRITORY_SALES_MANAGER,
    ROLES,
)
from app.dealerdesk.errors import InvalidInput

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def _require_str(payload: dict, field: str, label: str) -> str:
    value = payload.get(field)
    if value is None or value == "":
        raise InvalidInput(field, f"{label} is required.")
    if not isinstance(value, str):
        raise InvalidInput(field, f"{label} must be a string.")
    return value


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def validate_email_change(payload: dict) -> dict:
    raw = _require_str(payload, "newEmail", "New email")
    email = raw.strip()
    if not is_valid_email(email):
        raise InvalidInput("newEmail", "Invalid email format")
    if "confirmEmail" in payload and payload["confirmEmail"] != raw:
        raise InvalidInput("confirmEmail", "Emails do not match.")
    # Trimmed only; case is stored as submitted.
    return {"new_email": email}


def validate_password_reset(payload: dict) -> dict:
    password = _require_str(payload, "newPassword", "New password")
    # Server-side rule set: no special-character requirement (see password_strength).
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput("newPassword", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not _UPPER_RE.search(password):
        raise InvalidInput("newPassword", "Password must contain at least one uppercase letter")
    if not _LOWER_RE.search(password):
        raise InvalidInput("newPassword", "Password must contain at least one lowercase letter")
    if not _DIGIT_RE.search(password):
        raise InvalidInput("newPassword", "Password must contain at least one number")
    if "confirmPassword" in payload and payload["confirmPassword"] != password:
        raise InvalidInput("confirmPassword", "Passwords do not match.")
    return {"new_password": password}


def validate_role_change(payload: dict) -> dict:
    role = _require_str(payload, "role", "Role").strip()
    if role not in ROLES:
        raise InvalidInput("role", "Invalid role")
    territory = None
    if role == ROLE_TERRITORY_SALES_MANAGER:
        raw = payload.get("territory")
        territory = raw.strip() if isinstance(raw, str) else ""
        if not territory:
            raise InvalidInput("territory", "Territory is required for Territory Sales Manager")
    return {"role": role, "territory": territory}


def reject_self_demotion(caller_id: str, normalized: dict) -> None:
    """An admin may not take the admin role away from themselves."""
    if normalized["user_id"] == caller_id and normalized["role"] != ROLE_ADMIN:
        raise InvalidInput("role", "You cannot remove your own admin role")


_VALIDATORS = {
    ACTION_EMAIL_CHANGE: validate_email_change,
    ACTION_PASSWORD_RESET: validate_password_reset,
    ACTION_ROLE_CHANGE: validate_role_change,
}


def validate_request(kind: str, payload: Any) -> dict:
    """
    Validate a privileged action body. Returns the normalized payload
    (always including "user_id") or raises InvalidInput; first failure wins.
    """
    if kind not in _VALIDATORS:
        raise ValueError(f"Unknown action kind: {kind}")
    if not isinstance(payload, dict):
        raise InvalidInput("body", "Request body must be a JSON object.")
    user_id = _require_str(payload, "userId", "userId").strip()
    if not user_id:
        raise InvalidInput("userId", "userId is required.")
    normalized = _VALIDATORS[kind](payload)
    normalized["user_id"] = user_id
    return normalized


def password_strength(password: str) -> dict:
    """
    Client-side strength meter rules (five, including a special character).
    Display helper only; validate_password_reset deliberately checks four.
    """
    checks = {
        "length": len(password) >= MIN_PASSWORD_LENGTH,
        "uppercase": bool(_UPPER_RE.search(password)),
        "lowercase": bool(_LOWER_RE.search(password)),
        "number": bool(_DIGIT_RE.search(password)),
        "special": bool(_SPECIAL_RE.search(password)),
    }
    met = sum(checks.values())
    if met == 0:
        level, label = 0, ""
    elif met <= 2:
        level, label = 1, "Weak"
    elif met == 3:
        level, label = 2, "Fair"
    elif met == 4:
        level, label = 3, "Good"
    else:
        level, label = 4, "Strong"
    return {"level": level, "label": label, "checks": checks}
