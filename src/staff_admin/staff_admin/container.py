from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import msal

from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .auth.guards import Guards
from .auth.providers.direct import DirectLoginAdapter
from .auth.providers.microsoft import MicrosoftLoginAdapter
from .auth.providers.oidc_client import OidcClient
from .auth.providers.replit import ReplitLoginAdapter
from .auth.session_store import MySQLSessionStore, SessionStore
from .auth.unifier import SessionUnifier
from .auth_settings.mysql_auth_settings_repository import MySQLAuthSettingsRepository
from .auth_settings.repository import AuthSettingsRepository
from .auth_settings.service import AuthSettingsService
from .change_requests.mysql_change_request_repository import MySQLChangeRequestRepository
from .change_requests.repository import ChangeRequestRepository
from .change_requests.service import ChangeRequestService
from .core.exceptions import ConfigurationError
from .credentials.mysql_credential_repository import MySQLCredentialRepository
from .credentials.repository import CredentialRepository
from .credentials.service import CredentialStore
from .database.connection import DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .permissions.mysql_permission_repository import MySQLPermissionRepository
from .permissions.repository import PermissionRepository
from .permissions.service import RoleResolver
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import IdentityResolver, UserAdminService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    credentials_repo: CredentialRepository
    employees_repo: EmployeeRepository
    auth_settings_repo: AuthSettingsRepository
    permissions_repo: PermissionRepository
    change_requests_repo: ChangeRequestRepository
    audit_repo: AuditRepository
    session_store: SessionStore

    credential_store: CredentialStore
    identity_resolver: IdentityResolver
    user_admin_service: UserAdminService
    auth_settings_service: AuthSettingsService
    role_resolver: RoleResolver
    change_request_service: ChangeRequestService

    direct_adapter: DirectLoginAdapter
    microsoft_adapter: Optional[MicrosoftLoginAdapter]
    replit_adapter: Optional[ReplitLoginAdapter]
    unifier: SessionUnifier
    guards: Guards


def wire_container(
    *,
    users_repo: UserRepository,
    credentials_repo: CredentialRepository,
    employees_repo: EmployeeRepository,
    auth_settings_repo: AuthSettingsRepository,
    permissions_repo: PermissionRepository,
    change_requests_repo: ChangeRequestRepository,
    audit_repo: AuditRepository,
    session_store: SessionStore,
    msal_client: Any = None,
    microsoft_redirect_uri: str = "",
    oidc_client: Optional[OidcClient] = None,
    credential_store: Optional[CredentialStore] = None,
) -> Container:
    """Build services and adapters on top of already-constructed repositories."""
    credential_store = credential_store or CredentialStore(credentials_repo)
    identity_resolver = IdentityResolver(users_repo, employees_repo)
    user_admin_service = UserAdminService(users_repo, credential_store, identity_resolver)
    auth_settings_service = AuthSettingsService(auth_settings_repo)
    role_resolver = RoleResolver(permissions_repo, employees_repo)
    change_request_service = ChangeRequestService(change_requests_repo, employees_repo, role_resolver, audit_repo)

    direct_adapter = DirectLoginAdapter(auth_settings_service, credential_store, users_repo, identity_resolver)
    microsoft_adapter = None
    if msal_client is not None:
        microsoft_adapter = MicrosoftLoginAdapter(
            auth_settings_service,
            msal_client,
            identity_resolver,
            redirect_uri=microsoft_redirect_uri,
        )
    replit_adapter = None
    if oidc_client is not None:
        replit_adapter = ReplitLoginAdapter(auth_settings_service, oidc_client, identity_resolver)

    unifier = SessionUnifier(users_repo, roles=role_resolver, replit=replit_adapter)
    guards = Guards(unifier, role_resolver)

    return Container(
        users_repo=users_repo,
        credentials_repo=credentials_repo,
        employees_repo=employees_repo,
        auth_settings_repo=auth_settings_repo,
        permissions_repo=permissions_repo,
        change_requests_repo=change_requests_repo,
        audit_repo=audit_repo,
        session_store=session_store,
        credential_store=credential_store,
        identity_resolver=identity_resolver,
        user_admin_service=user_admin_service,
        auth_settings_service=auth_settings_service,
        role_resolver=role_resolver,
        change_request_service=change_request_service,
        direct_adapter=direct_adapter,
        microsoft_adapter=microsoft_adapter,
        replit_adapter=replit_adapter,
        unifier=unifier,
        guards=guards,
    )


def build_msal_client(settings) -> Optional[msal.ConfidentialClientApplication]:
    if not getattr(settings, "MICROSOFT_AUTH_ENABLED", False):
        return None

    required = ("MICROSOFT_CLIENT_ID", "MICROSOFT_CLIENT_SECRET", "MICROSOFT_TENANT_ID", "MICROSOFT_REDIRECT_URI")
    missing = [name for name in required if not getattr(settings, name, "")]
    if missing:
        raise ConfigurationError(f"Microsoft login is enabled but not configured: missing {', '.join(missing)}")

    return msal.ConfidentialClientApplication(
        settings.MICROSOFT_CLIENT_ID,
        authority=f"https://login.microsoftonline.com/{settings.MICROSOFT_TENANT_ID}",
        client_credential=settings.MICROSOFT_CLIENT_SECRET,
        timeout=float(getattr(settings, "UPSTREAM_HTTP_TIMEOUT", 10)),
    )


def build_oidc_client(settings) -> Optional[OidcClient]:
    if not getattr(settings, "REPLIT_AUTH_ENABLED", False):
        return None

    client_id = getattr(settings, "REPL_ID", "")
    redirect_uri = getattr(settings, "REPLIT_REDIRECT_URI", "")
    if not client_id or not redirect_uri:
        raise ConfigurationError("Replit login is enabled but REPL_ID or REPLIT_REDIRECT_URI is missing")

    return OidcClient(
        issuer_url=getattr(settings, "REPLIT_ISSUER_URL", "https://replit.com/oidc"),
        client_id=client_id,
        redirect_uri=redirect_uri,
        timeout=float(getattr(settings, "UPSTREAM_HTTP_TIMEOUT", 10)),
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection.from_dict(db_config)

    msal_client = build_msal_client(settings) if settings is not None else None
    oidc_client = build_oidc_client(settings) if settings is not None else None
    logger.info(
        "Login providers configured: direct=on microsoft=%s replit=%s",
        "on" if msal_client else "off",
        "on" if oidc_client else "off",
    )

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        credentials_repo=MySQLCredentialRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        auth_settings_repo=MySQLAuthSettingsRepository(conn),
        permissions_repo=MySQLPermissionRepository(conn),
        change_requests_repo=MySQLChangeRequestRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        session_store=MySQLSessionStore(conn),
        msal_client=msal_client,
        microsoft_redirect_uri=getattr(settings, "MICROSOFT_REDIRECT_URI", ""),
        oidc_client=oidc_client,
    )
