from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Optional, Sequence

from ..auth.current_user import CurrentUser, is_admin
from ..core.exceptions import BadRequest, Forbidden, NotFound
from ..employees.repository import EmployeeRepository
from .model import Permission, Role
from .repository import PermissionRepository

logger = logging.getLogger(__name__)


class RoleResolver:
    """Use case: role membership and permission checks for employees.

    A User's ``is_admin`` flag bypasses every role check; it is not a role.
    """

    def __init__(self, permissions: PermissionRepository, employees: Optional[EmployeeRepository] = None):
        self._permissions = permissions
        self._employees = employees

    def roles_of(self, employee_id: Optional[int]) -> FrozenSet[str]:
        if employee_id is None:
            return frozenset()
        return frozenset(r.name for r in self._permissions.roles_for_employee(int(employee_id)))

    def enrich(self, current_user: CurrentUser) -> CurrentUser:
        return replace(current_user, roles=self.roles_of(current_user.employee_id))

    def require_role(self, current_user: Optional[CurrentUser], role: str) -> None:
        if current_user is None:
            raise Forbidden(f"{role} role required")
        if is_admin(current_user):
            return
        roles = current_user.roles or self.roles_of(current_user.employee_id)
        if role not in roles:
            raise Forbidden(f"{role} role required")

    def has_permission(self, employee_id: Optional[int], resource: str, action: str) -> bool:
        if employee_id is None:
            return False
        return any(
            p.resource == resource and p.action == action
            for p in self._permissions.permissions_for_employee(int(employee_id))
        )

    def field_level_permissions(self, employee_id: Optional[int], resource: str) -> Dict[str, bool]:
        """Merge per-field flags across all roles; a field is granted only if no role denies it."""
        if employee_id is None:
            return {}

        merged: Dict[str, bool] = {}
        for perm in self._permissions.permissions_for_employee(int(employee_id)):
            if perm.resource != resource or not perm.field_level:
                continue
            for field_name, allowed in perm.field_level.items():
                merged[field_name] = merged.get(field_name, True) and bool(allowed)
        return merged

    def list_roles(self) -> Sequence[Role]:
        return self._permissions.list_roles()

    def list_permissions(self) -> Sequence[Permission]:
        return self._permissions.list_permissions()

    def roles_for_employee(self, employee_id: int) -> Sequence[Role]:
        return self._permissions.roles_for_employee(int(employee_id))

    def assign_role(self, *, employee_id: int, role_id: int, assigned_by: Optional[str]) -> Role:
        role = self._get_role(role_id)
        if self._employees is not None and not self._employees.get_by_id(int(employee_id)):
            raise NotFound("Employee not found")

        if not self._permissions.assign_role(employee_id=int(employee_id), role_id=role.role_id, assigned_by=assigned_by):
            raise BadRequest("Employee already has this role")
        logger.info("Role %s assigned to employee %s by %s", role.name, employee_id, assigned_by)
        return role

    def remove_role(self, *, employee_id: int, role_id: int) -> None:
        role = self._get_role(role_id)
        if not self._permissions.remove_role(employee_id=int(employee_id), role_id=role.role_id):
            raise NotFound("Employee does not have this role")
        logger.info("Role %s removed from employee %s", role.name, employee_id)

    def summary_for(self, current_user: CurrentUser) -> dict:
        employee_id = current_user.employee_id
        perms = self._permissions.permissions_for_employee(int(employee_id)) if employee_id is not None else []
        seen = set()
        grants = []
        for p in perms:
            key = (p.resource, p.action, p.scope)
            if key in seen:
                continue
            seen.add(key)
            grants.append({"resource": p.resource, "action": p.action, "scope": p.scope})
        return {
            "isAdmin": is_admin(current_user),
            "employeeId": employee_id,
            "roles": sorted(current_user.roles or self.roles_of(employee_id)),
            "permissions": grants,
        }

    def _get_role(self, role_id: int) -> Role:
        role = self._permissions.get_role(int(role_id))
        if not role:
            raise NotFound("Role not found")
        return role
