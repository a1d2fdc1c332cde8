from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import g, session

from ..core.exceptions import Forbidden, Unauthenticated
from ..permissions.service import RoleResolver
from .current_user import CurrentUser, is_admin
from .unifier import SessionUnifier

_MISSING = object()


class Guards:
    """Route decorators built on the SessionUnifier.

    The resolved CurrentUser (roles included) is cached on ``flask.g`` so each
    request resolves the session and the role set exactly once.
    """

    def __init__(self, unifier: SessionUnifier, roles: RoleResolver):
        self._unifier = unifier
        self._roles = roles

    def current_user(self) -> Optional[CurrentUser]:
        cached = g.get("current_user", _MISSING)
        if cached is not _MISSING:
            return cached
        user = self._unifier.resolve(session)
        g.current_user = user
        return user

    def require_user(self) -> CurrentUser:
        user = self.current_user()
        if user is None:
            raise Unauthenticated()
        return user

    def login_required(self, view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            self.require_user()
            return view(*args, **kwargs)

        return wrapper

    def admin_required(self, view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not is_admin(self.require_user()):
                raise Forbidden("Admin access required")
            return view(*args, **kwargs)

        return wrapper

    def role_required(self, role: str) -> Callable:
        def decorator(view: Callable) -> Callable:
            @wraps(view)
            def wrapper(*args, **kwargs):
                self._roles.require_role(self.require_user(), role)
                return view(*args, **kwargs)

            return wrapper

        return decorator

