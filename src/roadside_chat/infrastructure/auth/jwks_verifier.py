from __future__ import annotations

import logging

import jwt
from jwt import PyJWKClient

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import UnauthorizedError
from roadside_chat.infrastructure.auth.claims import principal_from_claims

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Principal:
        try:
            signing_key = self._jwk_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256", "ES256"],
            )
        except jwt.PyJWTError as exc:
            logger.debug("JWKS verification failed: %s", exc)
            raise UnauthorizedError(str(exc)) from exc
        return principal_from_claims(payload)
