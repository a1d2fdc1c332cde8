from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuthProvider


@dataclass(frozen=True)
class User:
    """Login identity. Ids are provider-prefixed strings (``direct_``, ``replit_``, ``microsoft_``).

    Profile fields follow the linked Employee when there is one.
    """

    user_id: str
    auth_provider: AuthProvider
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: bool = False
    employee_id: Optional[int] = None
    impersonating_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profileImageUrl": self.profile_image_url,
            "authProvider": self.auth_provider.value,
            "isAdmin": bool(self.is_admin),
            "employeeId": self.employee_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
