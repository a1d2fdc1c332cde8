from __future__ import annotations

from typing import Optional, Protocol

from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def manages(self, *, manager_id: int, employee_id: int) -> bool:
        """True when ``employee_id``'s direct manager is ``manager_id``."""
        raise NotImplementedError
