from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, MutableMapping

import requests

from ...auth_settings.service import AuthSettingsService
from ...common.datetime_utils import epoch_seconds
from ...core.constants import DEFAULT_TOKEN_LIFETIME_SECONDS, MICROSOFT_SCOPES
from ...core.enums import AuthProvider
from ...core.exceptions import InvalidState, UpstreamAuthError
from ...users.model import User
from ...users.service import IdentityResolver
from ..claims import NormalizedClaims
from ..session_identity import MICROSOFT_FLOW_KEY, MICROSOFT_SESSION_KEY, MicrosoftIdentity, clear_identities
from .base import ProviderAdapter

logger = logging.getLogger(__name__)


class MicrosoftLoginAdapter(ProviderAdapter):
    """Microsoft Entra ID sign-in through an injected MSAL confidential client.

    MSAL generates the PKCE verifier/challenge (S256), state and nonce; the whole
    flow dict is kept in the session until the form-post callback arrives.
    """

    provider = AuthProvider.MICROSOFT
    login_path = "/api/login/microsoft"

    def __init__(
        self,
        settings: AuthSettingsService,
        client: Any,
        resolver: IdentityResolver,
        *,
        redirect_uri: str,
        clock: Callable[[], int] = epoch_seconds,
    ):
        super().__init__(settings)
        self._client = client
        self._resolver = resolver
        self._redirect_uri = redirect_uri
        self._clock = clock

    def begin_login(self, session: MutableMapping, **kwargs: Any) -> str:
        self.ensure_enabled()

        flow = self._client.initiate_auth_code_flow(
            MICROSOFT_SCOPES,
            redirect_uri=self._redirect_uri,
            prompt="select_account",
            response_mode="form_post",
        )
        session[MICROSOFT_FLOW_KEY] = flow
        return flow["auth_uri"]

    def complete_login(self, session: MutableMapping, params: Mapping[str, str]) -> User:
        flow = session.pop(MICROSOFT_FLOW_KEY, None)
        if not flow:
            raise InvalidState("Login session expired, please sign in again")
        if params.get("state") != flow.get("state"):
            raise InvalidState()

        if params.get("error"):
            logger.warning(
                "Microsoft returned an error on callback: %s %s",
                params.get("error"),
                params.get("error_description", ""),
            )
            raise UpstreamAuthError()

        try:
            result = self._client.acquire_token_by_auth_code_flow(flow, dict(params), scopes=MICROSOFT_SCOPES)
        except ValueError as e:
            # MSAL raises ValueError for state/flow mismatches
            logger.warning("Microsoft auth-code flow rejected: %s", e)
            raise InvalidState()
        except requests.RequestException as e:
            logger.error("Microsoft token endpoint unreachable: %s", e)
            raise UpstreamAuthError()

        if not result or "error" in result:
            logger.error(
                "Microsoft token exchange failed: %s %s",
                (result or {}).get("error"),
                (result or {}).get("error_description", ""),
            )
            raise UpstreamAuthError()

        id_claims = result.get("id_token_claims") or {}
        subject = id_claims.get("oid") or id_claims.get("sub")
        if not subject:
            logger.error("Microsoft ID token carried no subject claim")
            raise UpstreamAuthError()

        claims = NormalizedClaims.build(
            provider=AuthProvider.MICROSOFT,
            subject=subject,
            email=id_claims.get("email") or id_claims.get("preferred_username"),
            name=id_claims.get("name"),
        )
        user = self._resolver.resolve(claims)

        expires_in = int(result.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        clear_identities(session)
        session[MICROSOFT_SESSION_KEY] = MicrosoftIdentity(
            user_id=user.user_id,
            email=user.email,
            name=claims.name,
            expires_on=self._clock() + expires_in,
        ).to_session()
        logger.info("Microsoft login completed for user %s", user.user_id)
        return user
