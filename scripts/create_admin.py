"""Create a direct-login admin account, or reset the password of an existing one.

Usage: python scripts/create_admin.py USERNAME PASSWORD [EMAIL]
"""
from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staff_admin.staff_admin.common.datetime_utils import now_utc
from src.staff_admin.staff_admin.container import build_container
from src.staff_admin.staff_admin.core.exceptions import DomainError


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or reset a direct-login admin account")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("email", nargs="?", default=None)
    parser.add_argument("--first-name", default="System")
    parser.add_argument("--last-name", default="Administrator")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG))

    try:
        existing = container.credentials_repo.get_by_username(args.username)
        if existing:
            container.credential_store.change_password(user_id=existing.user_id, new_password=args.password)
            container.credential_store.set_enabled(user_id=existing.user_id, enabled=True)
            container.users_repo.set_admin(user_id=existing.user_id, is_admin=True, updated_at=now_utc())
            print(f"OK: reset password and admin rights for {args.username} ({existing.user_id})")
            return 0

        created = container.user_admin_service.create_direct_user(
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email or f"{args.username}@localhost",
            username=args.username,
            password=args.password,
            is_admin=True,
        )
    except DomainError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1

    print(f"OK: created admin {created['username']} ({created['id']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
