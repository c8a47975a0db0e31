"""Tests for the authorization gate (exact-match, fail-closed)."""
import pytest

from app.dealerdesk.rbac import authorize, role_label


@pytest.mark.parametrize("role", [None, "", "dealer", "finance", "accountant", "employee", "territory_sales_manager"])
def test_non_admin_roles_are_denied(role):
    decision = authorize(role, "admin")
    assert decision.allowed is False
    assert decision.reason


def test_missing_role_record_is_denied_not_defaulted():
    decision = authorize(None, "admin")
    assert decision.allowed is False
    assert "no role" in decision.reason


def test_unknown_role_label_is_denied_even_if_it_matches():
    # Outside the closed set, a literal match still does not grant access.
    assert authorize("superadmin", "superadmin").allowed is False


def test_exact_match_allows():
    assert authorize("admin", "admin").allowed is True


def test_no_role_hierarchy():
    assert authorize("admin", "finance").allowed is False


def test_role_label_display_fallback():
    assert role_label("territory_sales_manager") == "Territory Sales Manager"
    assert role_label("regional_lead") == "Regional Lead"
    assert role_label(None) == "No role"
