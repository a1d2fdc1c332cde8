from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository


def insert_audit_entry(cur, *, table_name: str, row_id: int, action: str, diff, acted_by, acted_at) -> int:
    """Append one audit row on an open cursor, inside the caller's transaction."""
    cur.execute(
        """
        INSERT INTO audit_log(table_name, row_id, action, diff, acted_by, acted_at)
        VALUES(%s,%s,%s,%s,%s,%s)
        """,
        (table_name, int(row_id), action, to_json(diff), acted_by, acted_at),
    )
    return int(cur.lastrowid)


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_row(self, *, table_name: str, row_id: int, limit: int = 200) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, table_name, row_id, action, diff, acted_by, acted_at
                FROM audit_log
                WHERE table_name=%s AND row_id=%s
                ORDER BY acted_at DESC, id DESC
                LIMIT %s
                """,
                (table_name, int(row_id), int(limit)),
            )
            rows = fetchall(cur)
        return [
            AuditEntry(
                audit_id=int(r["id"]),
                table_name=r["table_name"],
                row_id=int(r["row_id"]),
                action=r["action"],
                diff=from_json(r.get("diff")),
                acted_by=r.get("acted_by"),
                acted_at=r.get("acted_at"),
            )
            for r in rows
        ]
