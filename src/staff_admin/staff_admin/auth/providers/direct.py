from __future__ import annotations

from typing import Mapping, MutableMapping, Optional

from ...auth_settings.service import AuthSettingsService
from ...core.enums import AuthProvider
from ...core.exceptions import BadRequest, InvalidCredentials
from ...credentials.service import CredentialStore
from ...users.model import User
from ...users.repository import UserRepository
from ...users.service import IdentityResolver
from ..session_identity import DIRECT_SESSION_KEY, DirectIdentity, clear_identities
from .base import ProviderAdapter


class DirectLoginAdapter(ProviderAdapter):
    """Username/password login against the local credential store."""

    provider = AuthProvider.DIRECT
    login_path = "/auth/emergency"

    def __init__(
        self,
        settings: AuthSettingsService,
        credentials: CredentialStore,
        users: UserRepository,
        resolver: IdentityResolver,
    ):
        super().__init__(settings)
        self._credentials = credentials
        self._users = users
        self._resolver = resolver

    def begin_login(self, session: MutableMapping, *, username: str = "", password: str = "") -> User:
        if not (username or "").strip() or not password:
            raise BadRequest("Username and password are required")

        self.ensure_enabled()

        user_id = self._credentials.verify(username, password)
        user = self._users.get_by_id(user_id)
        if not user:
            raise InvalidCredentials()
        user = self._resolver.sync_with_employee(user)

        clear_identities(session)
        session[DIRECT_SESSION_KEY] = DirectIdentity(
            user_id=user.user_id,
            username=username.strip(),
            is_admin=user.is_admin is True,
        ).to_session()
        return user

    def complete_login(self, session: MutableMapping, params: Mapping[str, str]) -> Optional[User]:
        # nothing to finish: begin_login already established the session
        return None
