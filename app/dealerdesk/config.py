import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    access_token_max_age: int
    duplicate_guard_window_seconds: float
    cors_allow_origin: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def _getenv_float(name: str, default: float) -> float:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///dealerdesk.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        access_token_max_age=_getenv_int("ACCESS_TOKEN_MAX_AGE", 3600),
        duplicate_guard_window_seconds=_getenv_float("DUPLICATE_GUARD_WINDOW_SECONDS", 20.0),
        cors_allow_origin=_getenv("CORS_ALLOW_ORIGIN", "*"),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "ACCESS_TOKEN_MAX_AGE": s.access_token_max_age,
        "DUPLICATE_GUARD_WINDOW_SECONDS": s.duplicate_guard_window_seconds,
        "CORS_ALLOW_ORIGIN": s.cors_allow_origin,
        # JSON API only; small bodies
        "MAX_CONTENT_LENGTH": 64 * 1024,
    }
