import os
import sys
from datetime import datetime
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.dealerdesk.models import Base, Profile, User, UserRole  # noqa: E402
from scripts._db_utils import create_script_engine, database_url_from_env, script_session  # noqa: E402


def seed_only(*, database_url: str | None = None) -> None:
    """
    Create tables and seed the admin identity in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@dealerdesk.local").strip()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or database_url_from_env()).strip()

    engine = create_script_engine(db_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()

    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                email_confirmed_at=datetime.utcnow(),
                is_active=True,
            )
            s.add(user)
            s.flush()

        if s.get(Profile, user.id) is None:
            s.add(Profile(id=user.id, email=user.email, full_name="Administrator"))

        row = s.query(UserRole).filter(UserRole.user_id == user.id).one_or_none()
        if not row:
            s.add(UserRole(user_id=user.id, role="admin"))
        elif row.role != "admin":
            row.role = "admin"
            row.territory = None

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
