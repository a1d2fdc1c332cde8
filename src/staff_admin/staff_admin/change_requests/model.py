from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import ChangeRequestStatus


@dataclass(frozen=True)
class ChangeRequest:
    """Proposed edit of an employee record, applied only once approved.

    Transitions: pending -> approved, pending -> rejected. Both end states are final.
    """

    request_id: int
    target_employee_id: int
    requester_employee_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    status: ChangeRequestStatus = ChangeRequestStatus.PENDING
    approved_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ChangeRequestStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "targetEmployeeId": self.target_employee_id,
            "requesterEmployeeId": self.requester_employee_id,
            "payload": self.payload,
            "status": self.status.value,
            "approvedById": self.approved_by_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
