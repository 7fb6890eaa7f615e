"""Unit tests for the bearer-token dependencies.

Invitation lookups use ``get_optional_user`` so that an invitee can open a
link before signing in; accepting, declining and every admin route go
through ``get_current_user``.
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from api.dependencies.auth import get_current_user, get_optional_user
from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

SECRET = "test-secret"


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _signed(claims: dict, secret: str = SECRET) -> str:
    payload = {"aud": "authenticated", "exp": datetime.utcnow() + timedelta(minutes=5)}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key=SECRET, algorithm="HS256", expire_minutes=30)


@pytest.fixture
def invitee() -> TokenUser:
    return TokenUser(id=uuid4(), email="Invitee@Example.com", display_name="Ivan Invitee")


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_invitee_token_resolves_identity_claims(
        self, provider: JWTAuthProvider, invitee: TokenUser
    ):
        user = await get_current_user(_bearer(provider.create_token(invitee)), provider)

        assert user.id == invitee.id
        assert user.email == "Invitee@Example.com"
        assert user.display_name == "Ivan Invitee"

    @pytest.mark.asyncio
    async def test_missing_header_is_unauthorized(self, provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(None, provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Authorization header required"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token",
        [
            pytest.param("not.a.jwt", id="garbage"),
            pytest.param(
                _signed({"sub": str(uuid4()), "email": "a@x.com"}, secret="other-secret"),
                id="foreign-secret",
            ),
            pytest.param(
                _signed(
                    {
                        "sub": str(uuid4()),
                        "email": "a@x.com",
                        "exp": datetime.utcnow() - timedelta(minutes=1),
                    }
                ),
                id="expired",
            ),
            pytest.param(_signed({"sub": str(uuid4())}), id="no-email"),
            pytest.param(_signed({"sub": "service-account", "email": "a@x.com"}), id="non-uuid-sub"),
        ],
    )
    async def test_unusable_token_is_rejected(self, provider: JWTAuthProvider, token: str):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(_bearer(token), provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN
        assert exc_info.value.message == "Invalid or expired token"


class TestGetOptionalUser:
    @pytest.mark.asyncio
    async def test_anonymous_invitation_lookup_has_no_user(self, provider: JWTAuthProvider):
        assert await get_optional_user(None, provider) is None

    @pytest.mark.asyncio
    async def test_signed_in_invitee_is_resolved(
        self, provider: JWTAuthProvider, invitee: TokenUser
    ):
        user = await get_optional_user(_bearer(provider.create_token(invitee)), provider)

        assert user is not None
        assert user.id == invitee.id

    @pytest.mark.asyncio
    async def test_stale_session_falls_back_to_anonymous(
        self, invitee: TokenUser, provider: JWTAuthProvider
    ):
        expired = JWTAuthProvider(secret_key=SECRET, algorithm="HS256", expire_minutes=-1)

        user = await get_optional_user(_bearer(expired.create_token(invitee)), provider)

        assert user is None
