"""
Error taxonomy for privileged account mutations, plus the storage error table
used to turn store failures into short user-facing strings.
"""
from __future__ import annotations

import re

GENERIC_ERROR_MESSAGE = "Unable to complete operation. Please try again."

# SQLSTATE -> user-facing text. Full detail is only ever logged.
DATABASE_ERROR_MESSAGES = {
    "23505": "This record already exists",
    "23503": "Cannot complete operation due to related records",
    "23502": "Required information is missing",
    "42501": "You don't have permission to perform this action",
}

# SQLite has no SQLSTATE; map its constraint messages onto the same codes.
_SQLITE_PATTERNS = (
    (re.compile(r"UNIQUE constraint failed", re.I), "23505"),
    (re.compile(r"FOREIGN KEY constraint failed", re.I), "23503"),
    (re.compile(r"NOT NULL constraint failed", re.I), "23502"),
)


def error_code_for(exc: BaseException) -> str | None:
    """Best-effort SQLSTATE for a DB-API / SQLAlchemy error."""
    orig = getattr(exc, "orig", None) or exc
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    text = str(orig)
    for pattern, code in _SQLITE_PATTERNS:
        if pattern.search(text):
            return code
    return None


def describe_store_error(exc: BaseException) -> str:
    """
    Short diagnostic for logs: exception class, SQLSTATE and the driver message.
    Never includes the SQL statement or its bound parameters.
    """
    orig = getattr(exc, "orig", None)
    detail = str(orig).splitlines()[0] if orig is not None and str(orig) else ""
    code = error_code_for(exc)
    text = type(exc).__name__
    if code:
        text += f" [{code}]"
    if detail:
        text += f": {detail[:200]}"
    return text


def user_message_for(exc: BaseException) -> str:
    code = error_code_for(exc)
    if code and code in DATABASE_ERROR_MESSAGES:
        return DATABASE_ERROR_MESSAGES[code]
    return GENERIC_ERROR_MESSAGE


class PipelineError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class Unauthenticated(PipelineError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(PipelineError):
    status_code = 403
    message = "Forbidden"


class InvalidInput(PipelineError):
    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)

    def to_body(self) -> dict:
        return {"error": self.reason, "field": self.field}


class NotFound(PipelineError):
    status_code = 404
    message = "User not found"


class IdentityStoreError(PipelineError):
    """
    The identity store failed. `cause` is the store's diagnostic (log only);
    `category` is what a user may see.
    """

    status_code = 500

    def __init__(self, cause: str, category: str = GENERIC_ERROR_MESSAGE, code: str | None = None):
        self.cause = cause
        self.category = category
        self.code = code
        super().__init__(category)

    @classmethod
    def from_exc(cls, exc: BaseException) -> "IdentityStoreError":
        return cls(describe_store_error(exc), user_message_for(exc), error_code_for(exc))


class MutationFailed(PipelineError):
    status_code = 500

    def __init__(self, cause: str, category: str = GENERIC_ERROR_MESSAGE, code: str | None = None):
        self.cause = cause
        self.category = category
        self.code = code
        super().__init__(category)
