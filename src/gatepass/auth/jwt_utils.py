"""JWT utilities for authentication using authlib"""

import logging
from typing import Dict, Optional

import httpx
from aiocache import Cache, cached
from authlib.jose import JoseError, JsonWebToken
from authlib.jose.errors import InvalidTokenError

from gatepass.auth.models import User
from gatepass.config import config

logger = logging.getLogger(__name__)


class JWTUtils:
    """JWT token utilities using authlib with JWKS caching"""

    def __init__(self, auth0_domain: Optional[str] = None):
        self.jwt = JsonWebToken(["RS256"])
        self.auth0_domain = auth0_domain or config.get("auth0_domain")
        self.jwks_url = f"https://{self.auth0_domain}/.well-known/jwks.json"
        self.expected_issuer = f"https://{self.auth0_domain}/"

    @cached(ttl=3600, cache=Cache.MEMORY)
    async def _fetch_jwks(self) -> Dict:
        """
        Fetch JWKS from Auth0 well-known endpoint (cached)

        Returns:
            JWKS dictionary from Auth0
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.jwks_url, timeout=10.0)
                response.raise_for_status()
                jwks_data = response.json()

                logger.info(f"Successfully fetched JWKS from {self.jwks_url}")
                return jwks_data

        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch JWKS from {self.jwks_url}: {e}")
            raise InvalidTokenError(f"Unable to fetch JWKS: {e}")

    async def _verify_auth0_token(self, token: str) -> Dict:
        """
        Verify and decode an Auth0 JWT token using cached JWKS

        Raises:
            InvalidTokenError: If token is invalid or expired, or no Auth0
                domain is configured
        """
        if not self.auth0_domain:
            logger.error("AUTH0_DOMAIN is not configured, rejecting token")
            raise InvalidTokenError("Authentication is not configured")

        try:
            jwks = await self._fetch_jwks()

            # Key is picked from the JWKS by the token's kid header
            claims = self.jwt.decode(token, jwks)
            claims.validate()

            if claims.get("iss") != self.expected_issuer:
                raise InvalidTokenError(
                    f"Invalid issuer. Expected: {self.expected_issuer}, Got: {claims.get('iss')}"
                )

            return claims

        except InvalidTokenError:
            raise
        except JoseError as e:
            logger.warning(f"JWT validation failed: {e}")
            raise InvalidTokenError(f"Token validation failed: {str(e)}")

    async def extract_user(self, token: str) -> User:
        """
        Extract manager ID and claims from an Auth0 JWT token

        Raises:
            InvalidTokenError: If token is invalid or missing the subject
        """
        claims = await self._verify_auth0_token(token)
        user_id = claims.get("sub")

        if not user_id:
            raise InvalidTokenError("Token missing 'sub' claim")

        user_claims = {
            "iss": claims.get("iss"),
            "aud": claims.get("aud"),
            "exp": claims.get("exp"),
            "iat": claims.get("iat"),
            "scope": claims.get("scope"),
            "permissions": claims.get("permissions", []),
        }

        return User(user_id=user_id, claims=user_claims)


# Global JWT utilities instance
jwt_utils = JWTUtils()
