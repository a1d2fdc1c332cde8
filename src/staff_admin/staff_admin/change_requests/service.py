from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..auth.current_user import CurrentUser, is_admin
from ..common.datetime_utils import now_utc
from ..core.constants import ADMIN_ROLE, MANAGER_ROLE
from ..core.enums import ChangeRequestStatus, EmployeeStatus
from ..core.exceptions import BadRequest, Forbidden, InvalidTransition, NotFound
from ..employees.model import MUTABLE_EMPLOYEE_FIELDS, Employee
from ..employees.repository import EmployeeRepository
from ..permissions.service import RoleResolver
from .model import ChangeRequest
from .repository import ChangeRequestRepository

logger = logging.getLogger(__name__)

_REQUIRED_TEXT_FIELDS = {"firstName", "lastName", "email", "position"}
_OPTIONAL_TEXT_FIELDS = {"phone", "avatar"}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_payload(payload: Any) -> dict:
    """Check a proposed employee diff; returns it unchanged when valid."""
    if not isinstance(payload, dict):
        raise BadRequest("Invalid payload format")

    unknown = sorted(k for k in payload if k not in MUTABLE_EMPLOYEE_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(unknown)}")

    for key, value in payload.items():
        if key in _REQUIRED_TEXT_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise BadRequest(f"{key} must be a non-empty string")
        elif key in _OPTIONAL_TEXT_FIELDS:
            if value is not None and not isinstance(value, str):
                raise BadRequest(f"{key} must be a string")
        elif key == "departmentId":
            if not _is_int(value):
                raise BadRequest("departmentId must be an integer")
        elif key == "managerId":
            if value is not None and not _is_int(value):
                raise BadRequest("managerId must be an integer or null")
        elif key == "status":
            try:
                EmployeeStatus(value)
            except ValueError:
                raise BadRequest("status must be one of: active, inactive, onboarding")
    return payload


class ChangeRequestService:
    """Use case: propose, review and apply edits to employee records."""

    def __init__(
        self,
        requests: ChangeRequestRepository,
        employees: EmployeeRepository,
        roles: RoleResolver,
        audit: Optional[AuditRepository] = None,
        *,
        clock: Callable = now_utc,
    ):
        self._requests = requests
        self._employees = employees
        self._roles = roles
        self._audit = audit
        self._clock = clock

    def _requester_employee(self, current_user: CurrentUser) -> Employee:
        employee = None
        if current_user.employee_id is not None:
            employee = self._employees.get_by_id(current_user.employee_id)
        if employee is None and current_user.email:
            employee = self._employees.get_by_email(current_user.email)
        if employee is None:
            raise Forbidden("Your user account is not linked to an employee record")
        return employee

    def submit(self, *, current_user: CurrentUser, target_employee_id: int, payload: Any) -> ChangeRequest:
        payload = validate_payload(payload)

        target = self._employees.get_by_id(int(target_employee_id))
        if not target:
            raise NotFound("Employee not found")

        requester = self._requester_employee(current_user)

        can_self = requester.employee_id == target.employee_id
        can_manager = False
        if not can_self:
            roles = current_user.roles or self._roles.roles_of(requester.employee_id)
            can_manager = MANAGER_ROLE in roles and self._employees.manages(
                manager_id=requester.employee_id,
                employee_id=target.employee_id,
            )

        if not (can_self or can_manager or is_admin(current_user)):
            raise Forbidden("You don't have permission to create change requests for this employee")

        req = self._requests.create(
            target_employee_id=target.employee_id,
            requester_employee_id=requester.employee_id,
            payload=payload,
            created_at=self._clock(),
        )
        logger.info(
            "Change request %s submitted by employee %s for employee %s (fields=%s)",
            req.request_id,
            requester.employee_id,
            target.employee_id,
            ",".join(sorted(payload)),
        )
        return req

    def decide(self, *, current_user: CurrentUser, request_id: int, status: str) -> ChangeRequest:
        self._roles.require_role(current_user, ADMIN_ROLE)

        try:
            decision = ChangeRequestStatus(status)
        except ValueError:
            decision = None
        if decision not in {ChangeRequestStatus.APPROVED, ChangeRequestStatus.REJECTED}:
            raise BadRequest("Status must be 'approved' or 'rejected'")

        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFound("Change request not found")
        if not req.is_pending:
            raise InvalidTransition()

        now = self._clock()
        if decision == ChangeRequestStatus.APPROVED:
            decided = self._requests.approve(
                request_id=req.request_id,
                approved_by_id=current_user.employee_id,
                acted_by=current_user.user_id,
                decided_at=now,
            )
        else:
            decided = self._requests.reject(
                request_id=req.request_id,
                approved_by_id=current_user.employee_id,
                decided_at=now,
            )

        # Lost a race with another reviewer.
        if decided is None:
            raise InvalidTransition()

        logger.info("Change request %s %s by %s", decided.request_id, decided.status.value, current_user.user_id)
        return decided

    def list_pending(self, *, current_user: CurrentUser) -> Sequence[ChangeRequest]:
        self._roles.require_role(current_user, ADMIN_ROLE)
        return self._requests.list_by_status(ChangeRequestStatus.PENDING)

    def list_for_employee(self, *, current_user: CurrentUser, employee_id: int) -> Sequence[ChangeRequest]:
        if not is_admin(current_user) and current_user.employee_id != int(employee_id):
            raise Forbidden("You don't have permission to view these change requests")
        return self._requests.list_for_employee(int(employee_id))

    def audit_for_employee(self, *, current_user: CurrentUser, employee_id: int) -> Sequence[AuditEntry]:
        self._roles.require_role(current_user, ADMIN_ROLE)
        if self._audit is None:
            return []
        return self._audit.list_for_row(table_name="employees", row_id=int(employee_id))
