from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from ..core.enums import ChangeRequestStatus
from .model import ChangeRequest


class ChangeRequestRepository(Protocol):
    def create(
        self,
        *,
        target_employee_id: int,
        requester_employee_id: int,
        payload: Dict[str, Any],
        created_at: datetime,
    ) -> ChangeRequest:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[ChangeRequest]:
        raise NotImplementedError

    def list_by_status(self, status: ChangeRequestStatus, *, limit: int = 500) -> Sequence[ChangeRequest]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, *, limit: int = 200) -> Sequence[ChangeRequest]:
        raise NotImplementedError

    def approve(
        self,
        *,
        request_id: int,
        approved_by_id: Optional[int],
        acted_by: str,
        decided_at: datetime,
    ) -> Optional[ChangeRequest]:
        """Atomically mark approved, apply the payload and write one audit row.

        Returns None when the request is no longer pending; nothing is written then.
        """
        raise NotImplementedError

    def reject(
        self,
        *,
        request_id: int,
        approved_by_id: Optional[int],
        decided_at: datetime,
    ) -> Optional[ChangeRequest]:
        raise NotImplementedError
