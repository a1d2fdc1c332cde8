from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AuthProvider
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = (
    "id, email, first_name, last_name, profile_image_url, auth_provider, is_admin, "
    "employee_id, impersonating_id, created_at, updated_at"
)


def _row_to_user(row: dict) -> User:
    return User(
        user_id=row["id"],
        email=row.get("email"),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        profile_image_url=row.get("profile_image_url"),
        auth_provider=AuthProvider(row.get("auth_provider") or AuthProvider.DIRECT.value),
        is_admin=bool(row.get("is_admin")),
        employee_id=int(row["employee_id"]) if row.get("employee_id") is not None else None,
        impersonating_id=int(row["impersonating_id"]) if row.get("impersonating_id") is not None else None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s LIMIT 1", (email,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create(self, user: User) -> User:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(id, email, first_name, last_name, profile_image_url,
                                  auth_provider, is_admin, employee_id, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user.user_id,
                    user.email,
                    user.first_name,
                    user.last_name,
                    user.profile_image_url,
                    user.auth_provider.value,
                    1 if user.is_admin else 0,
                    user.employee_id,
                    user.created_at,
                    user.updated_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE id=%s", (user.user_id,))
            return _row_to_user(fetchone(cur))

    def update_profile(
        self,
        *,
        user_id: str,
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        profile_image_url: Optional[str],
        employee_id: Optional[int],
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET email=%s, first_name=%s, last_name=%s, profile_image_url=%s,
                    employee_id=%s, updated_at=%s
                WHERE id=%s
                """,
                (email, first_name, last_name, profile_image_url, employee_id, updated_at, user_id),
            )
            return cur.rowcount > 0

    def set_admin(self, *, user_id: str, is_admin: bool, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET is_admin=%s, updated_at=%s WHERE id=%s",
                (1 if is_admin else 0, updated_at, user_id),
            )
            return cur.rowcount > 0

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.id, u.email, u.first_name, u.last_name, u.auth_provider, u.is_admin,
                       u.employee_id, u.created_at, u.updated_at,
                       c.username, c.is_enabled, c.last_login_at
                FROM users u
                LEFT JOIN credentials c ON c.user_id = u.id
                ORDER BY u.created_at DESC, u.id
                """
            )
            rows = fetchall(cur)
        return [
            {
                "id": r["id"],
                "email": r.get("email"),
                "firstName": r.get("first_name"),
                "lastName": r.get("last_name"),
                "authProvider": r.get("auth_provider"),
                "isAdmin": bool(r.get("is_admin")),
                "employeeId": r.get("employee_id"),
                "username": r.get("username"),
                "isEnabled": bool(r["is_enabled"]) if r.get("is_enabled") is not None else None,
                "lastLoginAt": r["last_login_at"].isoformat() if r.get("last_login_at") else None,
                "createdAt": r["created_at"].isoformat() if r.get("created_at") else None,
            }
            for r in rows
        ]

    def delete_with_credentials(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET employee_id=NULL WHERE id=%s", (user_id,))
            cur.execute("DELETE FROM credentials WHERE user_id=%s", (user_id,))
            cur.execute("DELETE FROM users WHERE id=%s", (user_id,))
            return cur.rowcount > 0
