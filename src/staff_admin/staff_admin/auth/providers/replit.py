from __future__ import annotations

import logging
import secrets
from typing import Any, Callable, Mapping, MutableMapping

from ...auth_settings.service import AuthSettingsService
from ...common.datetime_utils import epoch_seconds
from ...core.constants import DEFAULT_TOKEN_LIFETIME_SECONDS, REPLIT_SCOPE
from ...core.enums import AuthProvider
from ...core.exceptions import InvalidState, ReauthenticationRequired, UpstreamAuthError
from ...users.model import User
from ...users.service import IdentityResolver
from ..claims import NormalizedClaims
from ..session_identity import REPLIT_FLOW_KEY, REPLIT_SESSION_KEY, ReplitIdentity, clear_identities
from .base import ProviderAdapter
from .oidc_client import OidcClient, OidcError, new_pkce_pair

logger = logging.getLogger(__name__)

_KEPT_CLAIMS = ("sub", "email", "first_name", "last_name", "profile_image_url", "exp")


class ReplitLoginAdapter(ProviderAdapter):
    """Replit OpenID Connect login with refresh-token renewal."""

    provider = AuthProvider.REPLIT
    login_path = "/api/replit/login"

    def __init__(
        self,
        settings: AuthSettingsService,
        oidc: OidcClient,
        resolver: IdentityResolver,
        *,
        clock: Callable[[], int] = epoch_seconds,
    ):
        super().__init__(settings)
        self._oidc = oidc
        self._resolver = resolver
        self._clock = clock

    def begin_login(self, session: MutableMapping, **kwargs: Any) -> str:
        self.ensure_enabled()

        verifier, challenge = new_pkce_pair()
        state = secrets.token_urlsafe(24)
        nonce = secrets.token_urlsafe(24)
        try:
            url = self._oidc.authorization_url(
                state=state,
                nonce=nonce,
                code_challenge=challenge,
                scope=REPLIT_SCOPE,
                prompt="login consent",
            )
        except OidcError as e:
            logger.error("Replit discovery failed: %s", e)
            raise UpstreamAuthError()

        session[REPLIT_FLOW_KEY] = {"state": state, "code_verifier": verifier, "nonce": nonce}
        return url

    def _expiry(self, tokens: dict, claims: dict) -> int:
        now = self._clock()
        if tokens.get("expires_in"):
            return now + int(tokens["expires_in"])
        if claims.get("exp") and int(claims["exp"]) > now:
            return int(claims["exp"])
        return now + DEFAULT_TOKEN_LIFETIME_SECONDS

    def complete_login(self, session: MutableMapping, params: Mapping[str, str]) -> User:
        flow = session.pop(REPLIT_FLOW_KEY, None)
        if not flow or params.get("state") != flow.get("state"):
            raise InvalidState()

        if params.get("error"):
            logger.warning("Replit returned an error on callback: %s", params.get("error"))
            raise UpstreamAuthError()
        code = params.get("code")
        if not code:
            raise InvalidState("Missing authorization code")

        try:
            tokens = self._oidc.exchange_code(code=code, code_verifier=flow["code_verifier"])
            id_claims = self._oidc.verify_id_token(tokens.get("id_token", ""), nonce=flow.get("nonce"))
        except OidcError as e:
            logger.error("Replit login failed: %s", e)
            raise UpstreamAuthError()

        claims = NormalizedClaims.build(
            provider=AuthProvider.REPLIT,
            subject=id_claims["sub"],
            email=id_claims.get("email"),
            first_name=id_claims.get("first_name") or id_claims.get("given_name"),
            last_name=id_claims.get("last_name") or id_claims.get("family_name"),
            profile_image_url=id_claims.get("profile_image_url"),
        )
        user = self._resolver.resolve(claims)

        clear_identities(session)
        session[REPLIT_SESSION_KEY] = ReplitIdentity(
            user_id=user.user_id,
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            expires_at=self._expiry(tokens, id_claims),
            claims={k: id_claims[k] for k in _KEPT_CLAIMS if k in id_claims},
        ).to_session()
        logger.info("Replit login completed for user %s", user.user_id)
        return user

    def refresh(self, identity: ReplitIdentity) -> ReplitIdentity:
        """Renew an expired access token; failure means the user must log in again."""
        if not identity.refresh_token:
            raise ReauthenticationRequired(self.login_path)

        try:
            tokens = self._oidc.refresh(identity.refresh_token)
        except OidcError as e:
            logger.warning("Replit token refresh failed for user %s: %s", identity.user_id, e)
            raise ReauthenticationRequired(self.login_path)

        claims = dict(identity.claims)
        if tokens.get("id_token"):
            try:
                fresh = self._oidc.verify_id_token(tokens["id_token"])
            except OidcError as e:
                logger.warning("Refreshed id_token rejected for user %s: %s", identity.user_id, e)
                raise ReauthenticationRequired(self.login_path)
            claims.update({k: fresh[k] for k in _KEPT_CLAIMS if k in fresh})

        return ReplitIdentity(
            user_id=identity.user_id,
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token") or identity.refresh_token,
            expires_at=self._expiry(tokens, claims),
            claims=claims,
        )

    def logout_url(self, *, post_logout_redirect_uri: str) -> str:
        try:
            return self._oidc.end_session_url(post_logout_redirect_uri=post_logout_redirect_uri)
        except OidcError as e:
            logger.warning("Replit end-session URL unavailable: %s", e)
            return post_logout_redirect_uri
