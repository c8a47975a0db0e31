from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from flask import current_app, g
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from werkzeug.security import generate_password_hash

from app.dealerdesk.db import session_scope
from app.dealerdesk.errors import IdentityStoreError, NotFound, Unauthenticated, describe_store_error
from app.dealerdesk.models import Profile, User, UserRole

logger = logging.getLogger(__name__)

_TOKEN_SALT = "dealerdesk.access-token"


@dataclass(frozen=True)
class Caller:
    id: str
    email: str | None


@dataclass(frozen=True)
class TargetIdentity:
    id: str
    email: str


def _serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=_TOKEN_SALT)


def sign_access_token(secret_key: str, user_id: str) -> str:
    """Inverse of token verification; used by operator scripts and tests."""
    return _serializer(secret_key).dumps({"sub": user_id})


class IdentityProvider:
    """
    SQL-backed identity store: caller lookup by bearer token, role lookup,
    credential, profile and role updates. Every call uses its own short session.
    """

    def __init__(self, sm: sessionmaker, secret_key: str, token_max_age: int = 3600):
        self._sm = sm
        self._secret_key = secret_key
        self._token_max_age = token_max_age

    def get_caller(self, token: str | None) -> Caller:
        if not token:
            raise Unauthenticated("No authorization header")
        try:
            data = _serializer(self._secret_key).loads(token, max_age=self._token_max_age)
        except SignatureExpired:
            logger.info("Expired access token presented")
            raise Unauthenticated()
        except BadSignature:
            raise Unauthenticated()
        user_id = data.get("sub") if isinstance(data, dict) else None
        if not user_id:
            raise Unauthenticated()

        try:
            with session_scope(self._sm) as s:
                user = s.get(User, str(user_id))
                if not user or not user.is_active:
                    raise Unauthenticated()
                return Caller(id=user.id, email=user.email)
        except SQLAlchemyError as e:
            logger.error("Caller lookup failed: %s", describe_store_error(e))
            raise IdentityStoreError.from_exc(e)

    def get_role(self, user_id: str) -> str:
        try:
            with session_scope(self._sm) as s:
                row = s.query(UserRole).filter(UserRole.user_id == user_id).one_or_none()
                if row is None:
                    raise NotFound("Role not found")
                return row.role
        except SQLAlchemyError as e:
            raise IdentityStoreError.from_exc(e)

    def get_user(self, user_id: str) -> TargetIdentity:
        try:
            with session_scope(self._sm) as s:
                user = s.get(User, user_id)
                if user is None:
                    raise NotFound()
                return TargetIdentity(id=user.id, email=user.email)
        except SQLAlchemyError as e:
            raise IdentityStoreError.from_exc(e)

    def update_user(
        self,
        user_id: str,
        *,
        email: str | None = None,
        password: str | None = None,
        email_confirm: bool = False,
    ) -> None:
        try:
            with session_scope(self._sm) as s:
                user = s.get(User, user_id)
                if user is None:
                    raise NotFound()
                if email is not None:
                    user.email = email
                    if email_confirm:
                        user.email_confirmed_at = datetime.utcnow()
                if password is not None:
                    user.password_hash = generate_password_hash(password)
        except SQLAlchemyError as e:
            raise IdentityStoreError.from_exc(e)

    def update_profile(self, user_id: str, *, email: str) -> None:
        try:
            with session_scope(self._sm) as s:
                profile = s.get(Profile, user_id)
                if profile is None:
                    raise NotFound("Profile not found")
                profile.email = email
        except SQLAlchemyError as e:
            raise IdentityStoreError.from_exc(e)

    def set_role(self, user_id: str, role: str, territory: str | None) -> tuple[str, str | None] | None:
        """
        Upsert the single role row for a user. Returns the previous
        (role, territory), or None when the user had no role row.
        """
        try:
            with session_scope(self._sm) as s:
                row = s.query(UserRole).filter(UserRole.user_id == user_id).one_or_none()
                if row is None:
                    s.add(UserRole(user_id=user_id, role=role, territory=territory))
                    return None
                previous = (row.role, row.territory)
                row.role = role
                row.territory = territory
                return previous
        except SQLAlchemyError as e:
            raise IdentityStoreError.from_exc(e)


def identity_provider() -> IdentityProvider:
    return IdentityProvider(
        current_app.extensions["sqlalchemy_sessionmaker"],
        current_app.config["SECRET_KEY"],
        int(current_app.config.get("ACCESS_TOKEN_MAX_AGE") or 3600),
    )


def assign_request_id() -> None:
    """Per-request id for audit/log correlation."""
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
