from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Credential


class CredentialRepository(Protocol):
    def get_by_username(self, username: str) -> Optional[Credential]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: str) -> Optional[Credential]:
        raise NotImplementedError

    def create(self, *, user_id: str, username: str, password_hash: str) -> Credential:
        raise NotImplementedError

    def update_password_hash(self, *, user_id: str, password_hash: str, updated_at: datetime) -> bool:
        raise NotImplementedError

    def set_enabled(self, *, user_id: str, is_enabled: bool, updated_at: datetime) -> bool:
        raise NotImplementedError

    def record_login(self, *, credential_id: int, logged_in_at: datetime) -> None:
        raise NotImplementedError
