from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Credential:
    """Username/password record of a user who logs in with the direct provider."""

    credential_id: int
    user_id: str
    username: str
    password_hash: str
    is_enabled: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
