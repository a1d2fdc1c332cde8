from __future__ import annotations

from enum import Enum


class AuthProvider(str, Enum):
    """Login mechanism that produced a user record or session."""

    DIRECT = "direct"
    MICROSOFT = "microsoft"
    REPLIT = "replit"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ONBOARDING = "onboarding"


class ChangeRequestStatus(str, Enum):
    """Approval flow state of an employee change request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
