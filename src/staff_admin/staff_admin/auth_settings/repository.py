from __future__ import annotations

from typing import Optional, Protocol

from .model import AuthSettings


class AuthSettingsRepository(Protocol):
    def get_latest(self) -> Optional[AuthSettings]:
        raise NotImplementedError

    def insert(self, settings: AuthSettings) -> AuthSettings:
        raise NotImplementedError
