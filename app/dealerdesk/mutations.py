from __future__ import annotations

import logging
from dataclasses import dataclass

from app.dealerdesk.auth import IdentityProvider, TargetIdentity
from app.dealerdesk.constants import ACTION_EMAIL_CHANGE, ACTION_PASSWORD_RESET, ACTION_ROLE_CHANGE
from app.dealerdesk.errors import IdentityStoreError, MutationFailed, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    kind: str
    target_id: str
    old_email: str | None = None
    new_email: str | None = None
    # False when the profile copy of the email could not be updated.
    profile_synced: bool = True
    previous_role: str | None = None
    new_role: str | None = None
    previous_territory: str | None = None
    new_territory: str | None = None


def _change_email(provider: IdentityProvider, target: TargetIdentity, new_email: str) -> MutationResult:
    # Admin override: auto-confirm, no verification round-trip.
    provider.update_user(target.id, email=new_email, email_confirm=True)

    profile_synced = True
    try:
        provider.update_profile(target.id, email=new_email)
    except (IdentityStoreError, NotFound) as e:
        profile_synced = False
        logger.error(
            "Profile email sync failed for user %s (credential email already changed): %s",
            target.id,
            getattr(e, "cause", e),
        )
    return MutationResult(
        kind=ACTION_EMAIL_CHANGE,
        target_id=target.id,
        old_email=target.email,
        new_email=new_email,
        profile_synced=profile_synced,
    )


def _reset_password(provider: IdentityProvider, target: TargetIdentity, new_password: str) -> MutationResult:
    # Privileged override: no current-password check.
    provider.update_user(target.id, password=new_password)
    return MutationResult(kind=ACTION_PASSWORD_RESET, target_id=target.id, old_email=target.email)


def _change_role(provider: IdentityProvider, target: TargetIdentity, role: str, territory: str | None) -> MutationResult:
    previous = provider.set_role(target.id, role, territory)
    previous_role, previous_territory = previous if previous else (None, None)
    return MutationResult(
        kind=ACTION_ROLE_CHANGE,
        target_id=target.id,
        old_email=target.email,
        previous_role=previous_role,
        new_role=role,
        previous_territory=previous_territory,
        new_territory=territory,
    )


def execute(provider: IdentityProvider, kind: str, target: TargetIdentity, payload: dict) -> MutationResult:
    """
    Apply a validated credential or role change. Store failures surface as
    MutationFailed; the store's diagnostic is logged, never returned.
    """
    try:
        if kind == ACTION_EMAIL_CHANGE:
            return _change_email(provider, target, payload["new_email"])
        if kind == ACTION_PASSWORD_RESET:
            return _reset_password(provider, target, payload["new_password"])
        if kind == ACTION_ROLE_CHANGE:
            return _change_role(provider, target, payload["role"], payload["territory"])
    except IdentityStoreError as e:
        logger.error("Identity store rejected %s for user %s: %s", kind, target.id, e.cause)
        raise MutationFailed(e.cause, e.category, e.code)
    raise ValueError(f"Unknown action kind: {kind}")
