from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..auth.claims import NormalizedClaims
from ..common.datetime_utils import epoch_seconds, now_utc
from ..common.validators import require_non_empty
from ..core.enums import AuthProvider
from ..core.exceptions import BadRequest, DuplicateUsername, Forbidden, NotFound
from ..credentials.service import CredentialStore
from ..employees.repository import EmployeeRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_DEFAULT_NAMES = {
    AuthProvider.REPLIT: ("Replit", "User"),
    AuthProvider.MICROSOFT: ("Microsoft", "User"),
}


class IdentityResolver:
    """Use case: turn provider claims into a persisted User.

    Existing users are matched by email first, then by provider-prefixed id.
    ``is_admin`` is never touched here; new users always start as non-admin.
    """

    def __init__(self, users: UserRepository, employees: EmployeeRepository, *, clock: Callable = now_utc):
        self._users = users
        self._employees = employees
        self._clock = clock

    def resolve(self, claims: NormalizedClaims) -> User:
        user = self._users.get_by_email(claims.email) if claims.email else None
        if user is None:
            user = self._users.get_by_id(claims.user_id)

        if user is None:
            default_first, default_last = _DEFAULT_NAMES.get(claims.provider, ("", ""))
            now = self._clock()
            user = self._users.create(
                User(
                    user_id=claims.user_id,
                    auth_provider=claims.provider,
                    email=claims.email,
                    first_name=claims.first_name or default_first,
                    last_name=claims.last_name or default_last,
                    profile_image_url=claims.profile_image_url,
                    is_admin=False,
                    created_at=now,
                    updated_at=now,
                )
            )
            logger.info("Created %s user %s", claims.provider.value, user.user_id)
        elif user.employee_id is None:
            user = self._refresh_from_claims(user, claims)

        return self.sync_with_employee(user)

    def _refresh_from_claims(self, user: User, claims: NormalizedClaims) -> User:
        # a linked Employee owns the profile; only unlinked users follow the provider
        wanted = {
            "email": claims.email or user.email,
            "first_name": claims.first_name or user.first_name,
            "last_name": claims.last_name or user.last_name,
            "profile_image_url": claims.profile_image_url or user.profile_image_url,
        }
        if wanted["email"] != user.email and self._email_owned_by_other(user, wanted["email"]):
            wanted["email"] = user.email
        if all(getattr(user, k) == v for k, v in wanted.items()):
            return user

        updated_at = self._clock()
        self._users.update_profile(
            user_id=user.user_id, employee_id=user.employee_id, updated_at=updated_at, **wanted
        )
        logger.info("Refreshed user %s from %s claims", user.user_id, claims.provider.value)
        return replace(user, updated_at=updated_at, **wanted)

    def _email_owned_by_other(self, user: User, email: Optional[str]) -> bool:
        owner = self._users.get_by_email(email) if email else None
        if owner is None or owner.user_id == user.user_id:
            return False
        logger.warning(
            "Keeping email of user %s: %s already belongs to user %s", user.user_id, email, owner.user_id
        )
        return True

    def sync_with_employee(self, user: User) -> User:
        """Link the matching Employee and copy its profile fields onto the User.

        Only writes when something actually differs. The employee's email is
        not copied when another user already holds it.
        """
        employee = self._employees.get_by_id(user.employee_id) if user.employee_id is not None else None
        if employee is None and user.email:
            employee = self._employees.get_by_email(user.email)
        if employee is None:
            return user

        email = employee.email
        if email != user.email and self._email_owned_by_other(user, email):
            email = user.email
        wanted = {
            "email": email,
            "first_name": employee.first_name,
            "last_name": employee.last_name,
            "employee_id": employee.employee_id,
        }
        if all(getattr(user, k) == v for k, v in wanted.items()):
            return user

        updated_at = self._clock()
        self._users.update_profile(
            user_id=user.user_id, profile_image_url=user.profile_image_url, updated_at=updated_at, **wanted
        )
        logger.info("Synchronized user %s from employee %s", user.user_id, employee.employee_id)
        return replace(user, updated_at=updated_at, **wanted)


class UserAdminService:
    """Use case: manage users and their direct-login credentials (admin)."""

    def __init__(
        self,
        users: UserRepository,
        credentials: CredentialStore,
        resolver: Optional[IdentityResolver] = None,
        *,
        clock: Callable = now_utc,
    ):
        self._users = users
        self._credentials = credentials
        self._resolver = resolver
        self._clock = clock

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def create_direct_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        username: str,
        password: str,
        is_admin: bool = False,
    ) -> dict:
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        email = require_non_empty(email, "Email")
        username = require_non_empty(username, "Username")
        require_non_empty(password, "Password")

        if self._credentials.username_taken(username):
            raise DuplicateUsername()
        if self._users.get_by_email(email):
            raise BadRequest("A user with this email already exists")

        now = self._clock()
        user = self._users.create(
            User(
                user_id=f"direct_{username}_{epoch_seconds()}",
                auth_provider=AuthProvider.DIRECT,
                email=email,
                first_name=first_name,
                last_name=last_name,
                profile_image_url="",
                is_admin=bool(is_admin),
                created_at=now,
                updated_at=now,
            )
        )
        try:
            cred = self._credentials.create(user_id=user.user_id, username=username, password=password)
        except Exception:
            self._users.delete_with_credentials(user.user_id)
            raise

        if self._resolver is not None:
            user = self._resolver.sync_with_employee(user)

        logger.info("Created direct user %s (admin=%s)", user.user_id, user.is_admin)
        return {**user.to_dict(), "username": cred.username, "isEnabled": cred.is_enabled}

    def list_users(self) -> Sequence[dict]:
        return self._users.list_admin_view()

    def update_user(self, *, user_id: str, is_admin: Optional[bool] = None, is_enabled: Optional[bool] = None) -> User:
        if is_admin is None and is_enabled is None:
            raise BadRequest("No update parameters provided")

        user = self.get_user(user_id)
        if is_admin is not None:
            self._users.set_admin(user_id=user_id, is_admin=bool(is_admin), updated_at=self._clock())
        if is_enabled is not None and self._credentials.get_for_user(user_id):
            self._credentials.set_enabled(user_id=user_id, enabled=bool(is_enabled))

        return self._users.get_by_id(user_id) or user

    def change_password(
        self,
        *,
        actor_id: str,
        actor_is_admin: bool,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        if actor_id != user_id and not actor_is_admin:
            raise Forbidden("Not authorized to change password for this user")

        if not actor_is_admin:
            self._credentials.confirm_password(user_id=user_id, password=current_password)
        self._credentials.change_password(user_id=user_id, new_password=new_password)
        logger.info("Password changed for user %s by %s", user_id, actor_id)

    def set_password(self, *, user_id: str, new_password: str) -> None:
        self._credentials.change_password(user_id=user_id, new_password=new_password)

    def set_enabled(self, *, user_id: str, enabled: bool) -> None:
        self._credentials.set_enabled(user_id=user_id, enabled=enabled)
        logger.info("User %s %s", user_id, "enabled" if enabled else "disabled")

    def delete_user(self, *, actor_id: str, user_id: str) -> None:
        if actor_id == user_id:
            raise BadRequest("You cannot delete your own account. Please contact another administrator.")

        user = self.get_user(user_id)
        if not self._users.delete_with_credentials(user_id):
            raise NotFound("User not found")
        logger.info(
            "User %s deleted by %s (had employee record: %s)",
            user_id,
            actor_id,
            user.employee_id is not None,
        )
