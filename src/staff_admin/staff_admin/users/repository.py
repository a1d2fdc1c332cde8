from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Storage for login identities.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create(self, user: User) -> User:
        raise NotImplementedError

    def update_profile(
        self,
        *,
        user_id: str,
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        profile_image_url: Optional[str],
        employee_id: Optional[int],
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def set_admin(self, *, user_id: str, is_admin: bool, updated_at: datetime) -> bool:
        raise NotImplementedError

    def list_admin_view(self) -> Sequence[dict]:
        raise NotImplementedError

    def delete_with_credentials(self, user_id: str) -> bool:
        """Unlink the employee, drop credentials and the user row in one transaction."""
        raise NotImplementedError
