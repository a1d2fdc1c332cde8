from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..audit.mysql_audit_repository import insert_audit_entry
from ..core.enums import ChangeRequestStatus
from ..core.exceptions import NotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from ..employees.mysql_employee_repository import apply_employee_changes
from .model import ChangeRequest
from .repository import ChangeRequestRepository

_COLUMNS = "id, target_employee_id, requester_employee_id, payload, status, approved_by_id, created_at, updated_at"


def _row_to_request(row: dict) -> ChangeRequest:
    return ChangeRequest(
        request_id=int(row["id"]),
        target_employee_id=int(row["target_employee_id"]),
        requester_employee_id=int(row["requester_employee_id"]),
        payload=from_json(row.get("payload")) or {},
        status=ChangeRequestStatus(row["status"]),
        approved_by_id=int(row["approved_by_id"]) if row.get("approved_by_id") is not None else None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLChangeRequestRepository(ChangeRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        target_employee_id: int,
        requester_employee_id: int,
        payload: Dict[str, Any],
        created_at: datetime,
    ) -> ChangeRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO change_requests(target_employee_id, requester_employee_id, payload, status,
                                            created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(target_employee_id),
                    int(requester_employee_id),
                    to_json(payload),
                    ChangeRequestStatus.PENDING.value,
                    created_at,
                    created_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM change_requests WHERE id=%s", (int(cur.lastrowid),))
            return _row_to_request(fetchone(cur))

    def get_by_id(self, request_id: int) -> Optional[ChangeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM change_requests WHERE id=%s", (int(request_id),))
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def list_by_status(self, status: ChangeRequestStatus, *, limit: int = 500) -> Sequence[ChangeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM change_requests WHERE status=%s ORDER BY created_at, id LIMIT %s",
                (status.value, int(limit)),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_for_employee(self, employee_id: int, *, limit: int = 200) -> Sequence[ChangeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM change_requests
                WHERE target_employee_id=%s
                ORDER BY created_at DESC, id DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def _mark_decided(self, cur, *, request_id: int, status: ChangeRequestStatus, approved_by_id, decided_at) -> bool:
        cur.execute(
            """
            UPDATE change_requests
            SET status=%s, approved_by_id=%s, updated_at=%s
            WHERE id=%s AND status=%s
            """,
            (status.value, approved_by_id, decided_at, int(request_id), ChangeRequestStatus.PENDING.value),
        )
        return cur.rowcount > 0

    def approve(
        self,
        *,
        request_id: int,
        approved_by_id: Optional[int],
        acted_by: str,
        decided_at: datetime,
    ) -> Optional[ChangeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM change_requests WHERE id=%s FOR UPDATE", (int(request_id),))
            row = fetchone(cur)
            if not row:
                return None
            req = _row_to_request(row)

            if not self._mark_decided(
                cur,
                request_id=req.request_id,
                status=ChangeRequestStatus.APPROVED,
                approved_by_id=approved_by_id,
                decided_at=decided_at,
            ):
                return None

            if req.payload and apply_employee_changes(cur, employee_id=req.target_employee_id, payload=req.payload) == 0:
                # raising rolls the status update back with it
                raise NotFound("Target employee not found")

            insert_audit_entry(
                cur,
                table_name="employees",
                row_id=req.target_employee_id,
                action="update",
                diff=req.payload,
                acted_by=acted_by,
                acted_at=decided_at,
            )

            cur.execute(f"SELECT {_COLUMNS} FROM change_requests WHERE id=%s", (req.request_id,))
            return _row_to_request(fetchone(cur))

    def reject(
        self,
        *,
        request_id: int,
        approved_by_id: Optional[int],
        decided_at: datetime,
    ) -> Optional[ChangeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            if not self._mark_decided(
                cur,
                request_id=int(request_id),
                status=ChangeRequestStatus.REJECTED,
                approved_by_id=approved_by_id,
                decided_at=decided_at,
            ):
                return None
            cur.execute(f"SELECT {_COLUMNS} FROM change_requests WHERE id=%s", (int(request_id),))
            return _row_to_request(fetchone(cur))
