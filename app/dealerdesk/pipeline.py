"""
Privileged account-mutation pipeline.

received -> authenticated -> authorized -> validated -> executed -> audited -> responded

Anything failing before `executed` ends in `rejected` with no side effect.
Once the mutation is applied the response reports success; an audit or
profile-sync failure only downgrades the state to `partial_success`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.dealerdesk.audit import AuditEntry, AuditRecorder
from app.dealerdesk.auth import Caller, IdentityProvider
from app.dealerdesk.constants import (
    ACTION_EMAIL_CHANGE,
    ACTION_PASSWORD_RESET,
    ACTION_ROLE_CHANGE,
    AUDIT_EMAIL_CHANGE_FAILED,
    AUDIT_EMAIL_CHANGED,
    AUDIT_PASSWORD_RESET,
    AUDIT_PASSWORD_RESET_FAILED,
    AUDIT_ROLE_CHANGE_FAILED,
    AUDIT_ROLE_CHANGED,
    ENTITY_ROLE,
    ENTITY_USER,
    ROLE_ADMIN,
)
from app.dealerdesk.errors import Forbidden, IdentityStoreError, MutationFailed, NotFound, PipelineError, Unauthenticated
from app.dealerdesk.mutations import MutationResult, execute
from app.dealerdesk.rbac import authorize, role_label
from app.dealerdesk.validators import reject_self_demotion, validate_request

logger = logging.getLogger(__name__)

RECEIVED = "received"
AUTHENTICATED = "authenticated"
AUTHORIZED = "authorized"
VALIDATED = "validated"
EXECUTED = "executed"
AUDITED = "audited"
RESPONDED = "responded"
REJECTED = "rejected"
PARTIAL_SUCCESS = "partial_success"

PARTIAL_SUCCESS_WARNING = "The change was applied, but audit logging or profile sync may be delayed."


@dataclass(frozen=True)
class ActionSpec:
    kind: str
    required_role: str
    forbidden_message: str
    success_message: str | None
    audit_action: str
    audit_failed_action: str
    entity_type: str = ENTITY_USER


ACTIONS = {
    ACTION_EMAIL_CHANGE: ActionSpec(
        kind=ACTION_EMAIL_CHANGE,
        required_role=ROLE_ADMIN,
        forbidden_message="Only admins can change user emails",
        success_message="Email updated successfully",
        audit_action=AUDIT_EMAIL_CHANGED,
        audit_failed_action=AUDIT_EMAIL_CHANGE_FAILED,
    ),
    ACTION_PASSWORD_RESET: ActionSpec(
        kind=ACTION_PASSWORD_RESET,
        required_role=ROLE_ADMIN,
        forbidden_message="Only admins can reset passwords",
        success_message=None,
        audit_action=AUDIT_PASSWORD_RESET,
        audit_failed_action=AUDIT_PASSWORD_RESET_FAILED,
    ),
    ACTION_ROLE_CHANGE: ActionSpec(
        kind=ACTION_ROLE_CHANGE,
        required_role=ROLE_ADMIN,
        forbidden_message="Only admins can update roles",
        success_message=None,
        audit_action=AUDIT_ROLE_CHANGED,
        audit_failed_action=AUDIT_ROLE_CHANGE_FAILED,
        entity_type=ENTITY_ROLE,
    ),
}


@dataclass
class PipelineResult:
    state: str
    status_code: int
    body: dict[str, Any]
    trail: list[str] = field(default_factory=list)
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.state in (RESPONDED, PARTIAL_SUCCESS)


def _success_details(action: ActionSpec, caller: Caller, result: MutationResult) -> dict[str, Any]:
    if action.kind == ACTION_EMAIL_CHANGE:
        return {"old_email": result.old_email, "new_email": result.new_email, "changed_by": caller.email}
    if action.kind == ACTION_ROLE_CHANGE:
        return {
            "target_user_id": result.target_id,
            "target_user_email": result.old_email,
            "previous_role": result.previous_role,
            "new_role": result.new_role,
            "previous_territory": result.previous_territory,
            "new_territory": result.new_territory,
        }
    return {"target_user_email": result.old_email, "reset_by": caller.email}


def _check_role(provider: IdentityProvider, caller: Caller, action: ActionSpec) -> None:
    try:
        role = provider.get_role(caller.id)
    except NotFound:
        role = None
    except IdentityStoreError as e:
        logger.error("Role check error for caller %s: %s", caller.id, e.cause)
        raise IdentityStoreError(e.cause, "Failed to verify permissions", e.code)

    decision = authorize(role, action.required_role)
    if not decision.allowed:
        logger.warning("Forbidden %s attempt by caller %s: %s", action.kind, caller.id, decision.reason)
        raise Forbidden(action.forbidden_message)


def run_privileged_action(
    kind: str,
    *,
    token: str | None,
    payload: Any,
    provider: IdentityProvider,
    recorder: AuditRecorder,
    client_ip: str | None = None,
    request_id: str | None = None,
) -> PipelineResult:
    action = ACTIONS[kind]
    trail = [RECEIVED]

    def _reject(err: PipelineError) -> PipelineResult:
        trail.append(REJECTED)
        return PipelineResult(REJECTED, err.status_code, err.to_body(), trail, err)

    # Read-only steps; a rejection here leaves the store untouched.
    try:
        caller = provider.get_caller(token)
        trail.append(AUTHENTICATED)

        _check_role(provider, caller, action)
        trail.append(AUTHORIZED)

        normalized = validate_request(kind, payload)
        if kind == ACTION_ROLE_CHANGE:
            reject_self_demotion(caller.id, normalized)
        trail.append(VALIDATED)

        target = provider.get_user(normalized["user_id"])
    except PipelineError as err:
        if isinstance(err, Unauthenticated):
            logger.warning("Unauthenticated %s attempt (request_id=%s)", kind, request_id)
        return _reject(err)

    try:
        result = execute(provider, kind, target, normalized)
    except MutationFailed as err:
        recorder.record(
            AuditEntry(
                actor_id=caller.id,
                actor_email=caller.email,
                action=action.audit_failed_action,
                entity_type=action.entity_type,
                entity_id=target.id,
                # Category and SQLSTATE only; the store diagnostic stays in the log.
                details={"error": err.category, "error_code": err.code, "attempted_by": caller.email},
                ip_address=client_ip,
                request_id=request_id,
            )
        )
        return _reject(err)
    except NotFound as err:
        return _reject(err)
    trail.append(EXECUTED)

    audited = recorder.record(
        AuditEntry(
            actor_id=caller.id,
            actor_email=caller.email,
            action=action.audit_action,
            entity_type=action.entity_type,
            entity_id=target.id,
            details=_success_details(action, caller, result),
            ip_address=client_ip,
            request_id=request_id,
        )
    )
    if audited:
        trail.append(AUDITED)

    if kind == ACTION_EMAIL_CHANGE:
        logger.info("Email changed for user %s: %s -> %s", target.id, result.old_email, result.new_email)
    elif kind == ACTION_ROLE_CHANGE:
        logger.info("Role changed for user %s: %s -> %s by %s", target.id, result.previous_role, result.new_role, caller.id)
    else:
        logger.info("Password reset for user %s by %s", target.id, caller.id)

    body: dict[str, Any] = {"success": True}
    if action.success_message:
        body["message"] = action.success_message
    elif kind == ACTION_ROLE_CHANGE:
        body["message"] = f"Role updated to {role_label(result.new_role)}"

    if audited and result.profile_synced:
        trail.append(RESPONDED)
        return PipelineResult(RESPONDED, 200, body, trail)

    body["warning"] = PARTIAL_SUCCESS_WARNING
    trail.append(PARTIAL_SUCCESS)
    return PipelineResult(PARTIAL_SUCCESS, 200, body, trail)
