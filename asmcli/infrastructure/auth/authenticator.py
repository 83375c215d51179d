"""Exchanges a signed client assertion for an Apple School Manager access token.

The token is kept for the life of the Authenticator; it is never refreshed
or expired client-side.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from asmcli.domain.exceptions import AuthenticationError
from asmcli.domain.models.common import AccessToken
from asmcli.infrastructure.auth.credential_signer import build_client_assertion

logger = logging.getLogger(__name__)

TOKEN_URL = "https://account.apple.com/auth/oauth2/token"
TOKEN_SCOPE = "school.api"
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class Authenticator:
    """Owns the access token for one API client."""

    def __init__(
        self,
        key_id: str,
        client_id: str,
        private_key_path: Union[str, Path],
        http_client: httpx.Client,
    ):
        self.key_id = key_id
        self.client_id = client_id
        self.private_key_path = private_key_path
        self.http_client = http_client
        self._access_token: Optional[AccessToken] = None

    @property
    def access_token(self) -> Optional[AccessToken]:
        return self._access_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    def authenticate(self) -> AccessToken:
        """Requests a new access token and stores it.

        Always performs the exchange, even if a token is already held.

        Raises:
            AuthenticationError: If the token endpoint does not answer 200.
                The message carries the raw response body.
        """
        assertion = build_client_assertion(self.key_id, self.client_id, self.private_key_path)
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_assertion": assertion,
            "scope": TOKEN_SCOPE,
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
        }

        logger.info(f"Requesting access token for client {self.client_id}")
        response = self.http_client.post(TOKEN_URL, data=form)
        if response.status_code != 200:
            logger.error(f"Token request failed with status {response.status_code}")
            raise AuthenticationError(f"Failed to authenticate: {response.text}")

        token = response.json().get("access_token")
        if not token:
            raise AuthenticationError(f"Failed to authenticate: no access_token in response: {response.text}")

        self._access_token = AccessToken(token)
        logger.info("Authenticated with Apple School Manager.")
        return self._access_token

    def ensure_authenticated(self) -> AccessToken:
        """Authenticates only if no token is held yet."""
        if self._access_token:
            return self._access_token
        return self.authenticate()
