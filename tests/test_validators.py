"""
Unit tests for privileged action input validation.

Tests cover:
- Email shape and confirmation echo
- Password rules (length, upper, lower, digit) in order
- The missing special-character rule (server accepts, meter flags it)
- Role changes: closed role set, territory rule, self-demotion
"""

import pytest

from app.dealerdesk.errors import InvalidInput
from app.dealerdesk.validators import password_strength, reject_self_demotion, validate_request


class TestEmailChange:
    def test_valid_email_is_trimmed_but_case_preserved(self):
        out = validate_request("email_change", {"userId": "u-1", "newEmail": "  John.Smith@Example.com "})
        assert out == {"new_email": "John.Smith@Example.com", "user_id": "u-1"}

    @pytest.mark.parametrize(
        "email",
        ["", "ops", "ops@", "@example.com", "ops@example", "ops example@x.com", "ops@@example.com"],
    )
    def test_malformed_email_rejected(self, email):
        with pytest.raises(InvalidInput) as exc:
            validate_request("email_change", {"userId": "u-1", "newEmail": email})
        assert exc.value.field == "newEmail"

    def test_confirmation_must_match_exactly(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request(
                "email_change",
                {"userId": "u-1", "newEmail": "ops@example.com", "confirmEmail": "OPS@example.com"},
            )
        assert exc.value.field == "confirmEmail"

    def test_matching_confirmation_passes(self):
        out = validate_request(
            "email_change",
            {"userId": "u-1", "newEmail": "ops@example.com", "confirmEmail": "ops@example.com"},
        )
        assert out["new_email"] == "ops@example.com"

    def test_non_string_email_rejected(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request("email_change", {"userId": "u-1", "newEmail": 42})
        assert exc.value.field == "newEmail"


class TestPasswordReset:
    @pytest.mark.parametrize(
        "password,reason",
        [
            ("short1", "at least 8 characters"),
            ("Abc1", "at least 8 characters"),
            ("lowercase1", "uppercase"),
            ("UPPERCASE1", "lowercase"),
            ("NoDigitsHere", "number"),
        ],
    )
    def test_rule_failures(self, password, reason):
        with pytest.raises(InvalidInput) as exc:
            validate_request("password_reset", {"userId": "u-1", "newPassword": password})
        assert exc.value.field == "newPassword"
        assert reason in exc.value.reason

    def test_no_special_character_still_accepted(self):
        out = validate_request("password_reset", {"userId": "u-1", "newPassword": "Abcdefg1"})
        assert out == {"new_password": "Abcdefg1", "user_id": "u-1"}

    def test_strength_meter_flags_missing_special_character(self):
        strength = password_strength("Abcdefg1")
        assert strength["checks"]["special"] is False
        assert strength["label"] == "Good"
        assert password_strength("Abcdefg1!")["label"] == "Strong"
        assert password_strength("")["level"] == 0

    def test_confirmation_mismatch(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request(
                "password_reset",
                {"userId": "u-1", "newPassword": "Abcdefg1", "confirmPassword": "Abcdefg2"},
            )
        assert exc.value.field == "confirmPassword"


class TestCommon:
    def test_missing_user_id_checked_first(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request("password_reset", {"newPassword": "x"})
        assert exc.value.field == "userId"

    def test_body_must_be_object(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request("email_change", None)
        assert exc.value.field == "body"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            validate_request("role_change", {"userId": "u-1"})


class TestRoleChange:
    def test_known_role_without_territory(self):
        out = validate_request("role_change", {"userId": "u-1", "role": "finance", "territory": "North"})
        assert out == {"role": "finance", "territory": None, "user_id": "u-1"}

    @pytest.mark.parametrize("role", ["superuser", "Admin", "viewer"])
    def test_role_outside_closed_set_rejected(self, role):
        with pytest.raises(InvalidInput) as exc:
            validate_request("role_change", {"userId": "u-1", "role": role})
        assert exc.value.field == "role"
        assert exc.value.reason == "Invalid role"

    def test_missing_role_rejected(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request("role_change", {"userId": "u-1"})
        assert exc.value.field == "role"

    @pytest.mark.parametrize("territory", [None, "", "   ", 7])
    def test_territory_manager_needs_territory(self, territory):
        payload = {"userId": "u-1", "role": "territory_sales_manager"}
        if territory is not None:
            payload["territory"] = territory
        with pytest.raises(InvalidInput) as exc:
            validate_request("role_change", payload)
        assert exc.value.field == "territory"
        assert exc.value.reason == "Territory is required for Territory Sales Manager"

    def test_territory_is_trimmed(self):
        out = validate_request("role_change", {"userId": "u-1", "role": "territory_sales_manager", "territory": " West "})
        assert out["territory"] == "West"

    def test_admin_cannot_demote_self(self):
        normalized = validate_request("role_change", {"userId": "u-1", "role": "dealer"})
        with pytest.raises(InvalidInput) as exc:
            reject_self_demotion("u-1", normalized)
        assert exc.value.reason == "You cannot remove your own admin role"

    def test_admin_may_keep_own_admin_role_or_demote_others(self):
        reject_self_demotion("u-1", validate_request("role_change", {"userId": "u-1", "role": "admin"}))
        reject_self_demotion("u-1", validate_request("role_change", {"userId": "u-2", "role": "dealer"}))
