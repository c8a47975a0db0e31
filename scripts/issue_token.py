#!/usr/bin/env python3
"""Print a bearer token for an existing identity (operator use).

Usage:
  python scripts/issue_token.py --email admin@dealerdesk.local
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.dealerdesk.auth import sign_access_token  # noqa: E402
from app.dealerdesk.models import User  # noqa: E402
from scripts._db_utils import database_url_from_env, script_session  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="Email of the identity to issue a token for")
    args = parser.parse_args()

    db_url = database_url_from_env()
    secret_key = (os.environ.get("SECRET_KEY") or "change-me").strip()

    with script_session(db_url) as s:
        user = s.query(User).filter(User.email.ilike(args.email.strip())).one_or_none()
        if not user:
            print(f"User not found: {args.email}")
            sys.exit(1)
        if not user.is_active:
            print(f"User is inactive: {args.email}")
            sys.exit(1)
        print(sign_access_token(secret_key, user.id))


if __name__ == "__main__":
    main()
