from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.enums import AuthProvider
from ..core.exceptions import ProviderDisabled
from .model import AuthSettings
from .repository import AuthSettingsRepository

logger = logging.getLogger(__name__)


class AuthSettingsService:
    def __init__(self, settings: AuthSettingsRepository, *, clock: Callable = now_utc):
        self._settings = settings
        self._clock = clock

    def current(self) -> AuthSettings:
        return self._settings.get_latest() or AuthSettings()

    def replace(
        self,
        *,
        direct: Optional[bool] = None,
        microsoft: Optional[bool] = None,
        replit: Optional[bool] = None,
        updated_by: Optional[str] = None,
    ) -> AuthSettings:
        defaults = AuthSettings()
        saved = self._settings.insert(
            AuthSettings(
                direct_login_enabled=defaults.direct_login_enabled if direct is None else bool(direct),
                microsoft_login_enabled=defaults.microsoft_login_enabled if microsoft is None else bool(microsoft),
                replit_login_enabled=defaults.replit_login_enabled if replit is None else bool(replit),
                updated_by_id=updated_by,
                updated_at=self._clock(),
            )
        )
        logger.info(
            "Auth settings replaced by %s: direct=%s microsoft=%s replit=%s",
            updated_by,
            saved.direct_login_enabled,
            saved.microsoft_login_enabled,
            saved.replit_login_enabled,
        )
        return saved

    def ensure_enabled(self, provider: AuthProvider) -> None:
        if not self.current().is_enabled(provider):
            raise ProviderDisabled(f"{provider.value.capitalize()} login is currently disabled")
