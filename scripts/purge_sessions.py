"""Delete expired rows from the sessions table.

Meant for a periodic job (cron); live sessions are never touched.
"""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staff_admin.staff_admin.auth.session_store import MySQLSessionStore
from src.staff_admin.staff_admin.common.datetime_utils import now_utc
from src.staff_admin.staff_admin.database.connection import DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    store = MySQLSessionStore(DatabaseConnection.from_dict(dict(settings.DB_CONFIG)))

    removed = store.purge_expired(now=now_utc())
    print(f"OK: removed {removed} expired session(s)")


if __name__ == "__main__":
    main()
