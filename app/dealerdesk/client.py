"""
HTTP client for the privileged account endpoints.

Each form surface (email change, password reset, role change) owns its own DuplicateGuard,
mirroring one dialog instance in the admin UI. Closing the form resets it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from app.dealerdesk.constants import (
    ACTION_EMAIL_CHANGE,
    ACTION_PASSWORD_RESET,
    ACTION_ROLE_CHANGE,
    DEFAULT_DUPLICATE_GUARD_WINDOW_SECONDS,
)
from app.dealerdesk.guard import DuplicateGuard
from app.dealerdesk.validators import password_strength

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
NETWORK_ERROR_MESSAGE = "Network error. Please try again."


@dataclass(frozen=True)
class SubmitResult:
    suppressed: bool
    ok: bool = False
    status_code: int | None = None
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def error(self) -> str | None:
        return self.body.get("error")

    @property
    def warning(self) -> str | None:
        return self.body.get("warning")


class AdminAccountsClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        session: requests.Session | None = None,
        guard_window_seconds: float = DEFAULT_DUPLICATE_GUARD_WINDOW_SECONDS,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.guard_window_seconds = guard_window_seconds
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

    def post(self, path: str, payload: dict[str, Any]) -> SubmitResult:
        url = f"{self.base_url}/functions/{path.lstrip('/')}"
        resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        try:
            body = resp.json()
        except ValueError:
            body = {"error": (resp.text or "")[:200]}
        if not isinstance(body, dict):
            body = {"error": "Unexpected response"}
        ok = 200 <= resp.status_code < 300 and bool(body.get("success"))
        if not ok:
            logger.warning("POST %s failed: status=%s error=%s", path, resp.status_code, body.get("error"))
        return SubmitResult(suppressed=False, ok=ok, status_code=resp.status_code, body=body)

    def email_change_form(self) -> "EmailChangeForm":
        return EmailChangeForm(self, DuplicateGuard(self.guard_window_seconds))

    def password_reset_form(self) -> "PasswordResetForm":
        return PasswordResetForm(self, DuplicateGuard(self.guard_window_seconds))

    def role_change_form(self) -> "RoleChangeForm":
        return RoleChangeForm(self, DuplicateGuard(self.guard_window_seconds))


class _GuardedForm:
    kind = ""
    path = ""

    def __init__(self, client: AdminAccountsClient, guard: DuplicateGuard):
        self.client = client
        self.guard = guard

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def close(self) -> None:
        self.guard.reset()

    def _submit(self, key: str, payload: dict[str, Any]) -> SubmitResult:
        if self.guard.is_duplicate(key):
            logger.info("Suppressed duplicate %s submission", self.kind)
            return SubmitResult(suppressed=True)
        try:
            return self.client.post(self.path, payload)
        except requests.RequestException as e:
            # Nothing reached the server; free the slot so a retry goes through.
            self.guard.reset()
            logger.warning("%s submission failed before a response: %s", self.kind, e)
            return SubmitResult(suppressed=False, ok=False, body={"error": NETWORK_ERROR_MESSAGE})


class EmailChangeForm(_GuardedForm):
    kind = ACTION_EMAIL_CHANGE
    path = "change-user-email"

    def submit(self, user_id: str, new_email: str, confirm_email: str | None = None) -> SubmitResult:
        payload: dict[str, Any] = {"userId": user_id, "newEmail": new_email}
        if confirm_email is not None:
            payload["confirmEmail"] = confirm_email
        return self._submit(DuplicateGuard.make_key(self.kind, user_id, new_email), payload)


class PasswordResetForm(_GuardedForm):
    kind = ACTION_PASSWORD_RESET
    path = "reset-user-password"

    def submit(self, user_id: str, new_password: str, confirm_password: str | None = None) -> SubmitResult:
        payload: dict[str, Any] = {"userId": user_id, "newPassword": new_password}
        if confirm_password is not None:
            payload["confirmPassword"] = confirm_password
        # Single-instance dialog: keyed on action + target, never on the secret.
        return self._submit(DuplicateGuard.make_key(self.kind, user_id), payload)

    @staticmethod
    def strength(password: str) -> dict:
        """Meter shown beside the password field (five rules; the server checks four)."""
        return password_strength(password)


class RoleChangeForm(_GuardedForm):
    kind = ACTION_ROLE_CHANGE
    path = "update-user-role"

    def submit(self, user_id: str, role: str, territory: str | None = None) -> SubmitResult:
        payload: dict[str, Any] = {"userId": user_id, "role": role}
        if territory is not None:
            payload["territory"] = territory
        return self._submit(DuplicateGuard.make_key(self.kind, user_id, role, territory or ""), payload)
