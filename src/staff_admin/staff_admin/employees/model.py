from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmployeeStatus

# Change-request payload key -> employees column. Only these fields may be
# proposed for change.
MUTABLE_EMPLOYEE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "position": "position",
    "departmentId": "department_id",
    "managerId": "manager_id",
    "status": "status",
    "avatar": "avatar",
}


@dataclass(frozen=True)
class Employee:
    employee_id: int
    first_name: str
    last_name: str
    email: str
    position: str
    department_id: int
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    phone: Optional[str] = None
    manager_id: Optional[int] = None
    avatar: Optional[str] = None
    hire_date: Optional[datetime] = None
    department_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "departmentId": self.department_id,
            "department": self.department_name,
            "managerId": self.manager_id,
            "status": self.status.value,
            "avatar": self.avatar,
        }
