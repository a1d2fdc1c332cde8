from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Permission, Role


class PermissionRepository(Protocol):
    def list_roles(self) -> Sequence[Role]:
        raise NotImplementedError

    def get_role(self, role_id: int) -> Optional[Role]:
        raise NotImplementedError

    def list_permissions(self) -> Sequence[Permission]:
        raise NotImplementedError

    def roles_for_employee(self, employee_id: int) -> Sequence[Role]:
        raise NotImplementedError

    def permissions_for_employee(self, employee_id: int) -> Sequence[Permission]:
        """All permissions reachable through the employee's roles (one entry per role grant)."""
        raise NotImplementedError

    def assign_role(self, *, employee_id: int, role_id: int, assigned_by: Optional[str]) -> bool:
        raise NotImplementedError

    def remove_role(self, *, employee_id: int, role_id: int) -> bool:
        raise NotImplementedError
