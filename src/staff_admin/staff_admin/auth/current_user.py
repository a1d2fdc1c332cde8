from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..core.enums import AuthProvider


@dataclass(frozen=True)
class CurrentUser:
    """Provider-independent view of the authenticated caller for one request."""

    user_id: str
    is_admin: bool
    auth_provider: AuthProvider
    employee_id: Optional[int] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    impersonating_id: Optional[int] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def is_admin(current_user: Optional[CurrentUser]) -> bool:
    """Strict boolean admin check; ``None`` (anonymous) is never admin."""
    if current_user is None:
        return False
    return current_user.is_admin is True
