from __future__ import annotations

from dataclasses import dataclass

from app.dealerdesk.constants import ROLE_LABELS, ROLES


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None


ALLOW = Decision(True)


def authorize(role: str | None, required_role: str) -> Decision:
    """
    Exact-match role check. No hierarchy: "admin" does not satisfy "finance".
    Fails closed on a missing role record and on labels outside the known set.
    """
    if not role:
        return Decision(False, "no role assigned")
    if role not in ROLES:
        return Decision(False, f"unknown role {role!r}")
    if role != required_role:
        return Decision(False, f"role {role!r} is not {required_role!r}")
    return ALLOW


def role_label(role: str | None) -> str:
    """Display only. Never use this for access decisions."""
    if not role:
        return "No role"
    if role in ROLE_LABELS:
        return ROLE_LABELS[role]
    return role.replace("_", " ").title()
