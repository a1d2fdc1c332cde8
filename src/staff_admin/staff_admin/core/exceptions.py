from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class BadRequest(ValidationError):
    default_message = "Bad request"


class DuplicateUsername(ValidationError):
    default_message = "Username already exists"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(DomainError):
    """Raised when a change request is not in a state that allows the transition."""

    status_code = 409
    default_message = "Change request has already been decided"


class AuthenticationError(DomainError):
    """Raised when the caller could not be authenticated."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid username or password"


class AccountDisabled(AuthenticationError):
    default_message = "This account is disabled"


class Unauthenticated(AuthenticationError):
    default_message = "Unauthorized"


class InvalidState(AuthenticationError):
    """OIDC/PKCE state missing from the session or not matching the callback."""

    status_code = 400
    default_message = "Missing or invalid login state"


class UpstreamAuthError(AuthenticationError):
    """Token exchange or refresh with an identity provider failed."""

    status_code = 500
    default_message = "Error completing sign-in with the identity provider"


class ReauthenticationRequired(AuthenticationError):
    """The provider session expired; the caller must go through login again."""

    status_code = 302
    default_message = "Session expired, please login again"

    def __init__(self, location: str, message: Optional[str] = None):
        super().__init__(message)
        self.location = location


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    default_message = "Forbidden"


class Forbidden(AuthorizationError):
    pass


class ProviderDisabled(AuthorizationError):
    default_message = "This login method is currently disabled"


class ConfigurationError(Exception):
    """Raised at start-up when required settings are missing."""
