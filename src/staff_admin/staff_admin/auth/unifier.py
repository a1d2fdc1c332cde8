from __future__ import annotations

import logging
from typing import Callable, MutableMapping, Optional

from ..common.datetime_utils import epoch_seconds
from ..core.exceptions import ReauthenticationRequired
from ..permissions.service import RoleResolver
from ..users.model import User
from ..users.repository import UserRepository
from .current_user import CurrentUser
from .providers.microsoft import MicrosoftLoginAdapter
from .providers.replit import ReplitLoginAdapter
from .session_identity import (
    IDENTITY_KEYS,
    MICROSOFT_SESSION_KEY,
    REPLIT_SESSION_KEY,
    DirectIdentity,
    MicrosoftIdentity,
    NoIdentity,
    ReplitIdentity,
    identity_from_session,
)

logger = logging.getLogger(__name__)


def _to_current_user(user: User) -> CurrentUser:
    return CurrentUser(
        user_id=user.user_id,
        is_admin=user.is_admin is True,
        auth_provider=user.auth_provider,
        employee_id=user.employee_id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        impersonating_id=user.impersonating_id,
    )


class SessionUnifier:
    """Turn whatever identity the session carries into one CurrentUser.

    This is the only place that looks at provider-specific session fields. The
    User row is re-read on every call, so admin rights always come from storage.
    """

    def __init__(
        self,
        users: UserRepository,
        *,
        roles: Optional[RoleResolver] = None,
        replit: Optional[ReplitLoginAdapter] = None,
        clock: Callable[[], int] = epoch_seconds,
    ):
        self._users = users
        self._roles = roles
        self._replit = replit
        self._clock = clock

    def resolve(self, session: MutableMapping) -> Optional[CurrentUser]:
        identity = identity_from_session(session)

        if isinstance(identity, NoIdentity):
            return None

        if isinstance(identity, DirectIdentity):
            user_id = identity.user_id

        elif isinstance(identity, MicrosoftIdentity):
            if identity.is_expired(self._clock()):
                session.pop(MICROSOFT_SESSION_KEY, None)
                raise ReauthenticationRequired(MicrosoftLoginAdapter.login_path)
            user_id = identity.user_id

        elif isinstance(identity, ReplitIdentity):
            if identity.is_expired(self._clock()):
                identity = self._refresh_replit(session, identity)
            user_id = identity.user_id

        else:
            raise TypeError(f"unhandled session identity {type(identity).__name__}")

        user = self._users.get_by_id(user_id)
        if user is None:
            logger.info("Session refers to missing user %s; dropping it", user_id)
            for key in IDENTITY_KEYS:
                session.pop(key, None)
            return None

        current = _to_current_user(user)
        if self._roles is not None:
            current = self._roles.enrich(current)
        return current

    def _refresh_replit(self, session: MutableMapping, identity: ReplitIdentity) -> ReplitIdentity:
        if self._replit is None:
            session.pop(REPLIT_SESSION_KEY, None)
            raise ReauthenticationRequired(ReplitLoginAdapter.login_path)
        try:
            refreshed = self._replit.refresh(identity)
        except ReauthenticationRequired:
            session.pop(REPLIT_SESSION_KEY, None)
            raise
        session[REPLIT_SESSION_KEY] = refreshed.to_session()
        return refreshed
