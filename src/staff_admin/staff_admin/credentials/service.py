from __future__ import annotations

import logging
import secrets
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import AccountDisabled, DuplicateUsername, InvalidCredentials, NotFound
from .hashing import PasswordHashing
from .model import Credential
from .repository import CredentialRepository

logger = logging.getLogger(__name__)


class CredentialStore:
    """Use case: username/password accounts for direct login."""

    def __init__(
        self,
        credentials: CredentialRepository,
        hashing: Optional[PasswordHashing] = None,
        *,
        clock: Callable = now_utc,
    ):
        self._credentials = credentials
        self._hashing = hashing or PasswordHashing()
        self._clock = clock
        self._dummy_hash: Optional[str] = None

    def _timing_dummy(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self._hashing.hash(secrets.token_urlsafe(16))
        return self._dummy_hash

    def verify(self, username: str, password: str) -> str:
        """Check a username/password pair and return the owning user id.

        Unknown usernames still pay for one hash verification so that response
        time does not reveal which usernames exist.
        """
        username = (username or "").strip()
        cred = self._credentials.get_by_username(username) if username else None
        if not cred:
            self._hashing.verify(self._timing_dummy(), password or "")
            logger.info("Direct login rejected: unknown username")
            raise InvalidCredentials()

        ok = self._hashing.verify(cred.password_hash, password or "")
        if not cred.is_enabled:
            logger.info("Direct login rejected: disabled account user_id=%s", cred.user_id)
            raise AccountDisabled()
        if not ok:
            logger.info("Direct login rejected: bad password user_id=%s", cred.user_id)
            raise InvalidCredentials()

        now = self._clock()
        if self._hashing.needs_rehash(cred.password_hash):
            self._credentials.update_password_hash(
                user_id=cred.user_id,
                password_hash=self._hashing.hash(password),
                updated_at=now,
            )
            logger.info("Upgraded password hash for user_id=%s", cred.user_id)
        self._credentials.record_login(credential_id=cred.credential_id, logged_in_at=now)
        return cred.user_id

    def create(self, *, user_id: str, username: str, password: str) -> Credential:
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._credentials.get_by_username(username):
            raise DuplicateUsername()

        return self._credentials.create(
            user_id=user_id,
            username=username,
            password_hash=self._hashing.hash(password),
        )

    def change_password(self, *, user_id: str, new_password: str) -> None:
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        ok = self._credentials.update_password_hash(
            user_id=user_id,
            password_hash=self._hashing.hash(new_password),
            updated_at=self._clock(),
        )
        if not ok:
            raise NotFound("No credentials found for this user")

    def set_enabled(self, *, user_id: str, enabled: bool) -> None:
        ok = self._credentials.set_enabled(user_id=user_id, is_enabled=bool(enabled), updated_at=self._clock())
        if not ok:
            raise NotFound("No credentials found for this user")

    def get_for_user(self, user_id: str) -> Optional[Credential]:
        return self._credentials.get_by_user_id(user_id)

    def confirm_password(self, *, user_id: str, password: str) -> None:
        cred = self._credentials.get_by_user_id(user_id)
        if not cred:
            raise NotFound("No credentials found for this user")
        if not self._hashing.verify(cred.password_hash, password or ""):
            raise InvalidCredentials("Current password is incorrect")

    def username_taken(self, username: str) -> bool:
        return self._credentials.get_by_username((username or "").strip()) is not None
