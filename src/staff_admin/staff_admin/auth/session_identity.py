from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, MutableMapping, Optional, Union

DIRECT_SESSION_KEY = "direct_user"
MICROSOFT_SESSION_KEY = "microsoft_user"
REPLIT_SESSION_KEY = "replit_user"

MICROSOFT_FLOW_KEY = "microsoft_pkce"
REPLIT_FLOW_KEY = "replit_oidc"

IDENTITY_KEYS = (DIRECT_SESSION_KEY, MICROSOFT_SESSION_KEY, REPLIT_SESSION_KEY)


@dataclass(frozen=True)
class DirectIdentity:
    user_id: str
    username: str
    is_admin: bool = False

    def to_session(self) -> dict:
        return {"id": self.user_id, "username": self.username, "is_admin": bool(self.is_admin)}


@dataclass(frozen=True)
class MicrosoftIdentity:
    user_id: str
    email: Optional[str]
    name: str
    expires_on: int

    def is_expired(self, now: int) -> bool:
        return now >= int(self.expires_on)

    def to_session(self) -> dict:
        return {"id": self.user_id, "email": self.email, "name": self.name, "expires_on": int(self.expires_on)}


@dataclass(frozen=True)
class ReplitIdentity:
    user_id: str
    access_token: str
    refresh_token: Optional[str]
    expires_at: int
    claims: Dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: int) -> bool:
        return now >= int(self.expires_at)

    def to_session(self) -> dict:
        return {
            "id": self.user_id,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": int(self.expires_at),
            "claims": dict(self.claims),
        }


@dataclass(frozen=True)
class NoIdentity:
    pass


SessionIdentity = Union[DirectIdentity, MicrosoftIdentity, ReplitIdentity, NoIdentity]


def _entry(session: MutableMapping, key: str) -> Optional[dict]:
    value = session.get(key)
    if isinstance(value, dict) and value.get("id"):
        return value
    return None


def identity_from_session(session: MutableMapping) -> SessionIdentity:
    """Read the one identity a session carries: Direct, then Microsoft, then Replit."""
    direct = _entry(session, DIRECT_SESSION_KEY)
    if direct:
        return DirectIdentity(
            user_id=str(direct["id"]),
            username=str(direct.get("username") or ""),
            is_admin=direct.get("is_admin") is True,
        )

    microsoft = _entry(session, MICROSOFT_SESSION_KEY)
    if microsoft:
        return MicrosoftIdentity(
            user_id=str(microsoft["id"]),
            email=microsoft.get("email"),
            name=str(microsoft.get("name") or ""),
            expires_on=int(microsoft.get("expires_on") or 0),
        )

    replit = _entry(session, REPLIT_SESSION_KEY)
    if replit:
        return ReplitIdentity(
            user_id=str(replit["id"]),
            access_token=str(replit.get("access_token") or ""),
            refresh_token=replit.get("refresh_token") or None,
            expires_at=int(replit.get("expires_at") or 0),
            claims=dict(replit.get("claims") or {}),
        )

    return NoIdentity()


def clear_identities(session: MutableMapping) -> None:
    for key in IDENTITY_KEYS + (MICROSOFT_FLOW_KEY, REPLIT_FLOW_KEY):
        session.pop(key, None)
