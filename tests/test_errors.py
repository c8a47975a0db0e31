"""Tests for storage error -> user message mapping."""
import sqlite3

from sqlalchemy.exc import IntegrityError, OperationalError

from app.dealerdesk.errors import (
    GENERIC_ERROR_MESSAGE,
    IdentityStoreError,
    InvalidInput,
    describe_store_error,
    error_code_for,
    user_message_for,
)


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("pg failure")
        self.pgcode = pgcode


def test_pgcode_is_mapped():
    exc = IntegrityError("UPDATE users", {}, _PgError("23505"))
    assert error_code_for(exc) == "23505"
    assert user_message_for(exc) == "This record already exists"


def test_sqlite_unique_message_is_mapped():
    exc = IntegrityError("UPDATE users", {}, sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))
    assert user_message_for(exc) == "This record already exists"


def test_unknown_error_gets_generic_message():
    exc = OperationalError("SELECT 1", {}, sqlite3.OperationalError("database is locked"))
    assert error_code_for(exc) is None
    assert user_message_for(exc) == GENERIC_ERROR_MESSAGE


def test_invalid_input_body_names_field():
    err = InvalidInput("newEmail", "Invalid email format")
    assert err.status_code == 400
    assert err.to_body() == {"error": "Invalid email format", "field": "newEmail"}


def test_store_diagnostic_omits_statement_and_parameters():
    exc = OperationalError(
        "UPDATE users SET password_hash=? WHERE users.id = ?",
        ("scrypt:32768:8:1$salt$deadbeef", "u-2"),
        sqlite3.OperationalError("store down"),
    )
    assert "scrypt" in str(exc)
    text = describe_store_error(exc)
    assert text == "OperationalError: store down"
    assert "scrypt" not in text
    assert "UPDATE users" not in text


def test_identity_store_error_from_exc_carries_code_and_category():
    exc = IntegrityError("UPDATE users", ("secret@example.com",), sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))
    err = IdentityStoreError.from_exc(exc)
    assert err.code == "23505"
    assert err.category == "This record already exists"
    assert "secret@example.com" not in err.cause
