from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditEntry


class AuditRepository(Protocol):
    """Read side of the audit log. Rows are only ever written by the change-request approval."""

    def list_for_row(self, *, table_name: str, row_id: int, limit: int = 200) -> Sequence[AuditEntry]:
        raise NotImplementedError
