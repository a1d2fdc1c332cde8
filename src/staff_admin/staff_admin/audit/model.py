from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEntry:
    """Append-only record of an applied change."""

    audit_id: int
    table_name: str
    row_id: int
    action: str
    diff: Any = None
    acted_by: Optional[str] = None
    acted_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.audit_id,
            "table": self.table_name,
            "rowId": self.row_id,
            "action": self.action,
            "diff": self.diff,
            "actedBy": self.acted_by,
            "actedAt": self.acted_at.isoformat() if self.acted_at else None,
        }
