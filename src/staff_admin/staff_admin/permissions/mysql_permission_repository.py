from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json
from .model import Permission, Role
from .repository import PermissionRepository


def _row_to_role(row: dict) -> Role:
    return Role(
        role_id=int(row["id"]),
        name=row["name"],
        description=row.get("description"),
        is_default=bool(row.get("is_default")),
    )


def _row_to_permission(row: dict) -> Permission:
    return Permission(
        permission_id=int(row["id"]),
        name=row["name"],
        description=row.get("description"),
        resource=row["resource"],
        action=row["action"],
        scope=row.get("scope") or "all",
        field_level=from_json(row.get("field_level")),
    )


class MySQLPermissionRepository(PermissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_roles(self) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, description, is_default FROM roles ORDER BY name")
            return [_row_to_role(r) for r in fetchall(cur)]

    def get_role(self, role_id: int) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, description, is_default FROM roles WHERE id=%s", (int(role_id),))
            row = fetchone(cur)
            return _row_to_role(row) if row else None

    def list_permissions(self) -> Sequence[Permission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, description, resource, action, scope, field_level
                FROM permissions
                ORDER BY resource, action, id
                """
            )
            return [_row_to_permission(r) for r in fetchall(cur)]

    def roles_for_employee(self, employee_id: int) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.id, r.name, r.description, r.is_default
                FROM employee_roles er
                JOIN roles r ON r.id = er.role_id
                WHERE er.employee_id=%s
                ORDER BY r.name
                """,
                (int(employee_id),),
            )
            return [_row_to_role(r) for r in fetchall(cur)]

    def permissions_for_employee(self, employee_id: int) -> Sequence[Permission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.id, p.name, p.description, p.resource, p.action, p.scope, p.field_level
                FROM employee_roles er
                JOIN role_permissions rp ON rp.role_id = er.role_id
                JOIN permissions p ON p.id = rp.permission_id
                WHERE er.employee_id=%s
                ORDER BY er.role_id, p.id
                """,
                (int(employee_id),),
            )
            return [_row_to_permission(r) for r in fetchall(cur)]

    def assign_role(self, *, employee_id: int, role_id: int, assigned_by: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO employee_roles(employee_id, role_id, assigned_by)
                VALUES(%s,%s,%s)
                """,
                (int(employee_id), int(role_id), assigned_by),
            )
            return cur.rowcount > 0

    def remove_role(self, *, employee_id: int, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM employee_roles WHERE employee_id=%s AND role_id=%s",
                (int(employee_id), int(role_id)),
            )
            return cur.rowcount > 0
