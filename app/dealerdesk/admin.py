from datetime import date, datetime, time, timedelta

from flask import Blueprint, current_app, g, jsonify, request

from app.dealerdesk.audit import AuditRecorder, serialize_event
from app.dealerdesk.auth import identity_provider
from app.dealerdesk.constants import ACTION_EMAIL_CHANGE, ACTION_PASSWORD_RESET, ACTION_ROLE_CHANGE, ROLE_ADMIN
from app.dealerdesk.db import db_session
from app.dealerdesk.errors import Forbidden, InvalidInput, NotFound, PipelineError
from app.dealerdesk.models import AuditLog
from app.dealerdesk.pipeline import run_privileged_action
from app.dealerdesk.rbac import authorize
from app.dealerdesk.security import apply_cors_headers, bearer_token, client_ip

bp = Blueprint("admin", __name__)

AUDIT_LIST_DEFAULT_LIMIT = 100
AUDIT_LIST_MAX_LIMIT = 500


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


@bp.after_request
def _cors(resp):
    return apply_cors_headers(resp, current_app.config.get("CORS_ALLOW_ORIGIN") or "*")


@bp.errorhandler(PipelineError)
def _pipeline_error(e: PipelineError):
    return jsonify(e.to_body()), e.status_code


def _preflight():
    return "", 200


def _run(kind: str):
    sm = current_app.extensions["sqlalchemy_sessionmaker"]
    result = run_privileged_action(
        kind,
        token=bearer_token(request),
        payload=request.get_json(silent=True),
        provider=identity_provider(),
        recorder=AuditRecorder(sm),
        client_ip=client_ip(request),
        request_id=getattr(g, "request_id", None),
    )
    current_app.logger.debug("%s pipeline trail=%s request_id=%s", kind, result.trail, getattr(g, "request_id", None))
    return jsonify(result.body), result.status_code


@bp.route("/change-user-email", methods=["POST", "OPTIONS"])
def change_user_email():
    if request.method == "OPTIONS":
        return _preflight()
    return _run(ACTION_EMAIL_CHANGE)


@bp.route("/reset-user-password", methods=["POST", "OPTIONS"])
def reset_user_password():
    if request.method == "OPTIONS":
        return _preflight()
    return _run(ACTION_PASSWORD_RESET)


@bp.route("/update-user-role", methods=["POST", "OPTIONS"])
def update_user_role():
    if request.method == "OPTIONS":
        return _preflight()
    return _run(ACTION_ROLE_CHANGE)


def _require_admin() -> None:
    provider = identity_provider()
    caller = provider.get_caller(bearer_token(request))
    try:
        role = provider.get_role(caller.id)
    except NotFound:
        role = None
    decision = authorize(role, ROLE_ADMIN)
    if not decision.allowed:
        current_app.logger.warning("Forbidden audit log access by %s: %s", caller.id, decision.reason)
        raise Forbidden("Only admins can view audit logs")


@bp.route("/audit-logs", methods=["GET", "OPTIONS"])
def audit_logs():
    """
    Latest audit records, newest first, with optional filters:
    - action (exact)
    - entity_type (exact)
    - start_date / end_date (YYYY-MM-DD, inclusive)
    - limit (default 100, max 500)
    """
    if request.method == "OPTIONS":
        return _preflight()
    _require_admin()

    action = (request.args.get("action") or "").strip()
    entity_type = (request.args.get("entity_type") or "").strip()
    raw_start = (request.args.get("start_date") or "").strip()
    raw_end = (request.args.get("end_date") or "").strip()
    start_date = _parse_date(raw_start)
    end_date = _parse_date(raw_end)
    if raw_start and not start_date:
        raise InvalidInput("start_date", "start_date must be YYYY-MM-DD")
    if raw_end and not end_date:
        raise InvalidInput("end_date", "end_date must be YYYY-MM-DD")

    try:
        limit = int(request.args.get("limit") or AUDIT_LIST_DEFAULT_LIMIT)
    except ValueError:
        raise InvalidInput("limit", "limit must be an integer")
    limit = max(1, min(limit, AUDIT_LIST_MAX_LIMIT))

    s = db_session()
    q = s.query(AuditLog)
    if action:
        q = q.filter(AuditLog.action == action)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if start_date:
        q = q.filter(AuditLog.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        # inclusive end-date (treat as whole day)
        q = q.filter(AuditLog.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

    events = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify({"audit_logs": [serialize_event(ev) for ev in events]})
