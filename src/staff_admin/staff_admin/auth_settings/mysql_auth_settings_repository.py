from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AuthSettings
from .repository import AuthSettingsRepository

_COLUMNS = "id, direct_login_enabled, microsoft_login_enabled, replit_login_enabled, updated_by_id, updated_at"


def _row_to_settings(row: dict) -> AuthSettings:
    return AuthSettings(
        settings_id=int(row["id"]),
        direct_login_enabled=bool(row["direct_login_enabled"]),
        microsoft_login_enabled=bool(row["microsoft_login_enabled"]),
        replit_login_enabled=bool(row["replit_login_enabled"]),
        updated_by_id=row.get("updated_by_id"),
        updated_at=row.get("updated_at"),
    )


class MySQLAuthSettingsRepository(AuthSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_latest(self) -> Optional[AuthSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM auth_settings ORDER BY id DESC LIMIT 1")
            row = fetchone(cur)
            return _row_to_settings(row) if row else None

    def insert(self, settings: AuthSettings) -> AuthSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO auth_settings(direct_login_enabled, microsoft_login_enabled,
                                          replit_login_enabled, updated_by_id, updated_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    1 if settings.direct_login_enabled else 0,
                    1 if settings.microsoft_login_enabled else 0,
                    1 if settings.replit_login_enabled else 0,
                    settings.updated_by_id,
                    settings.updated_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM auth_settings WHERE id=%s", (int(cur.lastrowid),))
            return _row_to_settings(fetchone(cur))
