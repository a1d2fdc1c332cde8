from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuthProvider


@dataclass(frozen=True)
class AuthSettings:
    """Login-method toggles. The latest stored row is the one in force."""

    direct_login_enabled: bool = True
    microsoft_login_enabled: bool = False
    replit_login_enabled: bool = True
    settings_id: Optional[int] = None
    updated_by_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    def is_enabled(self, provider: AuthProvider) -> bool:
        return {
            AuthProvider.DIRECT: self.direct_login_enabled,
            AuthProvider.MICROSOFT: self.microsoft_login_enabled,
            AuthProvider.REPLIT: self.replit_login_enabled,
        }[provider]

    def to_dict(self) -> dict:
        return {
            "id": self.settings_id,
            "directLoginEnabled": self.direct_login_enabled,
            "microsoftLoginEnabled": self.microsoft_login_enabled,
            "replitLoginEnabled": self.replit_login_enabled,
            "updatedById": self.updated_by_id,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
