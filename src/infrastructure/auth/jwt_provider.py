"""JWT authentication provider.

Users are authenticated by Supabase; this service only verifies the
access token it issued and reads the acting user from its claims.

- ES256 tokens (Supabase) are verified against the project's JWKS.
- HS256 tokens are verified with ``JWT_SECRET_KEY`` (local runs and tests).

Relevant claims::

    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "user_metadata": {"display_name": "Jane"},
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timedelta
from time import monotonic
from typing import Any
from uuid import UUID

import httpx
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = logging.getLogger(__name__)

# Minimum gap between JWKS downloads triggered by unknown key ids
JWKS_REFETCH_INTERVAL_SECONDS = 60.0

# kid -> JWK, shared by every provider instance
_jwks_cache: dict[str, dict[str, Any]] = {}
_jwks_fetched_at: float | None = None


async def _fetch_jwks() -> dict[str, dict[str, Any]]:
    """Download the JWKS document and index its keys by ``kid``."""
    jwks_url = settings.supabase_jwks_url
    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            document = response.json()
    except (httpx.HTTPError, ValueError):
        logger.exception("Failed to fetch JWKS from %s", jwks_url)
        return {}

    keys = {key["kid"]: key for key in document.get("keys", []) if key.get("kid")}
    logger.info("Fetched %d JWKS keys", len(keys))
    return keys


async def _get_signing_key(kid: str) -> dict[str, Any] | None:
    """Look up a JWK, refetching in case the signing key rotated.

    Misses refetch at most once per ``JWKS_REFETCH_INTERVAL_SECONDS`` so
    tokens carrying made-up key ids cannot drive outbound requests.
    """
    global _jwks_fetched_at

    key = _jwks_cache.get(kid)
    if key is not None:
        return key

    now = monotonic()
    if _jwks_fetched_at is not None and now - _jwks_fetched_at < JWKS_REFETCH_INTERVAL_SECONDS:
        logger.warning("JWKS key not found for kid=%s (refetch throttled)", kid)
        return None

    _jwks_fetched_at = now
    keys = await _fetch_jwks()
    if keys:
        _jwks_cache.clear()
        _jwks_cache.update(keys)

    key = _jwks_cache.get(kid)
    if key is None:
        logger.warning("JWKS key not found for kid=%s", kid)
    return key


def _display_name(payload: dict[str, Any]) -> str | None:
    metadata = payload.get("user_metadata") or {}
    return (
        metadata.get("display_name")
        or metadata.get("name")
        or metadata.get("full_name")
        or payload.get("name")
    )


class JWTAuthProvider:
    """Verifies bearer tokens and turns their claims into a ``TokenUser``."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> TokenUser | None:
        """Return the token's user, or None if the token is invalid or expired."""
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._decode_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None

        try:
            parsed_id = UUID(user_id)
        except ValueError:
            return None

        return TokenUser(
            id=parsed_id,
            email=email,
            display_name=_display_name(payload),
            role=payload.get("role"),
        )

    async def _decode_es256(self, token: str, header: dict[str, Any]) -> dict[str, Any] | None:
        kid = header.get("kid")
        if not kid:
            return None

        key_data = await _get_signing_key(kid)
        if key_data is None:
            return None

        return jwt.decode(
            token,
            ECKey(key_data, algorithm="ES256"),
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    def create_token(self, user: TokenUser) -> str:
        """Sign an HS256 token for ``user``. Used by local tooling and tests."""
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": user.role or "authenticated",
            "exp": datetime.utcnow() + timedelta(minutes=self._expire_minutes),
            "user_metadata": {"display_name": user.display_name},
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
