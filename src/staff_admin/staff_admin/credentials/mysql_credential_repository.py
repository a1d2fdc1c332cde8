from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Credential
from .repository import CredentialRepository

_COLUMNS = "id, user_id, username, password_hash, is_enabled, last_login_at, created_at, updated_at"


def _row_to_credential(row: dict) -> Credential:
    return Credential(
        credential_id=int(row["id"]),
        user_id=row["user_id"],
        username=row["username"],
        password_hash=row["password_hash"],
        is_enabled=bool(row.get("is_enabled", True)),
        last_login_at=row.get("last_login_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLCredentialRepository(CredentialRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_username(self, username: str) -> Optional[Credential]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM credentials WHERE username=%s LIMIT 1", (username,))
            row = fetchone(cur)
            return _row_to_credential(row) if row else None

    def get_by_user_id(self, user_id: str) -> Optional[Credential]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM credentials WHERE user_id=%s LIMIT 1", (user_id,))
            row = fetchone(cur)
            return _row_to_credential(row) if row else None

    def create(self, *, user_id: str, username: str, password_hash: str) -> Credential:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO credentials(user_id, username, password_hash, is_enabled)
                VALUES(%s,%s,%s,1)
                """,
                (user_id, username, password_hash),
            )
            credential_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM credentials WHERE id=%s", (credential_id,))
            return _row_to_credential(fetchone(cur))

    def update_password_hash(self, *, user_id: str, password_hash: str, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE credentials SET password_hash=%s, updated_at=%s WHERE user_id=%s",
                (password_hash, updated_at, user_id),
            )
            return cur.rowcount > 0

    def set_enabled(self, *, user_id: str, is_enabled: bool, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE credentials SET is_enabled=%s, updated_at=%s WHERE user_id=%s",
                (1 if is_enabled else 0, updated_at, user_id),
            )
            return cur.rowcount > 0

    def record_login(self, *, credential_id: int, logged_in_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE credentials SET last_login_at=%s, updated_at=%s WHERE id=%s",
                (logged_in_at, logged_in_at, int(credential_id)),
            )
