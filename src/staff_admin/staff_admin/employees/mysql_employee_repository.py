from __future__ import annotations

from typing import Optional

from ..core.enums import EmployeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import MUTABLE_EMPLOYEE_FIELDS, Employee
from .repository import EmployeeRepository

_SELECT = """
    SELECT e.id, e.first_name, e.last_name, e.email, e.phone, e.position,
           e.department_id, e.manager_id, e.hire_date, e.status, e.avatar,
           d.name AS department_name
    FROM employees e
    LEFT JOIN departments d ON d.id = e.department_id
"""


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row.get("phone"),
        position=row["position"],
        department_id=int(row["department_id"]),
        manager_id=int(row["manager_id"]) if row.get("manager_id") is not None else None,
        hire_date=row.get("hire_date"),
        status=EmployeeStatus(row.get("status") or EmployeeStatus.ACTIVE.value),
        avatar=row.get("avatar"),
        department_name=row.get("department_name"),
    )


def apply_employee_changes(cur, *, employee_id: int, payload: dict) -> int:
    """UPDATE one employee from a change-request payload on an open cursor.

    Runs inside the caller's transaction. Returns the affected row count.
    """
    columns = []
    values = []
    for key, value in payload.items():
        column = MUTABLE_EMPLOYEE_FIELDS.get(key)
        if column is None:
            continue
        columns.append(f"{column}=%s")
        values.append(value)
    if not columns:
        return 0

    values.append(int(employee_id))
    cur.execute(f"UPDATE employees SET {', '.join(columns)} WHERE id=%s", tuple(values))
    return cur.rowcount


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.id=%s LIMIT 1", (int(employee_id),))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        if not email:
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.email=%s LIMIT 1", (email,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def manages(self, *, manager_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM employees WHERE id=%s AND manager_id=%s LIMIT 1",
                (int(employee_id), int(manager_id)),
            )
            return fetchone(cur) is not None
