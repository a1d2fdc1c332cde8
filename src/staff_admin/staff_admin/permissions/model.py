from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class Role:
    role_id: int
    name: str
    description: Optional[str] = None
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.role_id,
            "name": self.name,
            "description": self.description,
            "isDefault": self.is_default,
        }


@dataclass(frozen=True)
class Permission:
    """A ``(resource, action, scope)`` grant, optionally narrowed per field."""

    permission_id: int
    name: str
    resource: str
    action: str
    scope: str = "all"
    description: Optional[str] = None
    field_level: Optional[Dict[str, bool]] = None

    def to_dict(self) -> dict:
        return {
            "id": self.permission_id,
            "name": self.name,
            "description": self.description,
            "resource": self.resource,
            "action": self.action,
            "scope": self.scope,
            "fieldLevel": self.field_level,
        }


@dataclass(frozen=True)
class EmployeeRole:
    employee_id: int
    role_id: int
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
