from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlencode

import jwt
import requests

from ...core.constants import OIDC_METADATA_TTL_SECONDS

logger = logging.getLogger(__name__)


class OidcError(Exception):
    """Discovery, token or ID-token validation failure at the identity provider."""


def new_pkce_pair() -> tuple:
    """Return ``(code_verifier, code_challenge)`` using the S256 method."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class OidcClient:
    """Minimal OpenID Connect client for a public (PKCE) relying party.

    Provider metadata is discovered once and cached for an hour.
    """

    def __init__(
        self,
        *,
        issuer_url: str,
        client_id: str,
        redirect_uri: str,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._issuer_url = issuer_url.rstrip("/")
        self._client_id = client_id
        self._redirect_uri = redirect_uri
        self._timeout = timeout
        self._http = http or requests.Session()
        self._clock = clock
        self._metadata: Optional[Dict] = None
        self._metadata_fetched_at = 0.0
        self._jwks_client: Optional[jwt.PyJWKClient] = None

    @property
    def client_id(self) -> str:
        return self._client_id

    def metadata(self) -> Dict:
        now = self._clock()
        if self._metadata is not None and now - self._metadata_fetched_at < OIDC_METADATA_TTL_SECONDS:
            return self._metadata

        url = f"{self._issuer_url}/.well-known/openid-configuration"
        try:
            resp = self._http.get(url, timeout=self._timeout)
            resp.raise_for_status()
            metadata = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise OidcError(f"discovery failed for {url}: {e}") from e

        self._metadata = metadata
        self._metadata_fetched_at = now
        self._jwks_client = None
        return metadata

    def authorization_url(self, *, state: str, nonce: str, code_challenge: str, scope: str, prompt: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "scope": scope,
            "state": state,
            "nonce": nonce,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "prompt": prompt,
        }
        return f"{self.metadata()['authorization_endpoint']}?{urlencode(params)}"

    def _token_request(self, data: Dict[str, str]) -> Dict:
        endpoint = self.metadata()["token_endpoint"]
        try:
            resp = self._http.post(endpoint, data={**data, "client_id": self._client_id}, timeout=self._timeout)
        except requests.RequestException as e:
            raise OidcError(f"token endpoint unreachable: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or "error" in body:
            raise OidcError(
                f"token endpoint returned {resp.status_code}: "
                f"{body.get('error', '')} {body.get('error_description', '')}".strip()
            )
        if "access_token" not in body:
            raise OidcError("token response without access_token")
        return body

    def exchange_code(self, *, code: str, code_verifier: str) -> Dict:
        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._redirect_uri,
                "code_verifier": code_verifier,
            }
        )

    def refresh(self, refresh_token: str) -> Dict:
        return self._token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})

    def verify_id_token(self, id_token: str, *, nonce: Optional[str] = None) -> Dict:
        metadata = self.metadata()
        if self._jwks_client is None:
            self._jwks_client = jwt.PyJWKClient(metadata["jwks_uri"], timeout=int(self._timeout))

        algorithms = metadata.get("id_token_signing_alg_values_supported") or ["RS256"]
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=algorithms,
                audience=self._client_id,
                issuer=metadata.get("issuer", self._issuer_url),
            )
        except jwt.PyJWTError as e:
            raise OidcError(f"invalid id_token: {e}") from e

        if nonce is not None and claims.get("nonce") != nonce:
            raise OidcError("id_token nonce mismatch")
        return claims

    def end_session_url(self, *, post_logout_redirect_uri: str) -> str:
        endpoint = self.metadata().get("end_session_endpoint") or f"{self._issuer_url}/session/end"
        params = {"client_id": self._client_id, "post_logout_redirect_uri": post_logout_redirect_uri}
        return f"{endpoint}?{urlencode(params)}"
