from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, MutableMapping, Optional

from ...auth_settings.service import AuthSettingsService
from ...core.enums import AuthProvider
from ...users.model import User


class ProviderAdapter(ABC):
    """One login mechanism: start a login, then finish it from the provider's response.

    Every adapter checks the current AuthSettings before doing anything else, so a
    disabled provider is refused without contacting any upstream service.
    """

    provider: AuthProvider
    login_path: str

    def __init__(self, settings: AuthSettingsService):
        self._settings = settings

    def ensure_enabled(self) -> None:
        self._settings.ensure_enabled(self.provider)

    @abstractmethod
    def begin_login(self, session: MutableMapping, **kwargs: Any) -> Any:
        raise NotImplementedError

    @abstractmethod
    def complete_login(self, session: MutableMapping, params: Mapping[str, str]) -> Optional[User]:
        raise NotImplementedError
