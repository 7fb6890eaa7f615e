"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """The acting user, as asserted by a verified access token.

    Passed explicitly into services; nothing reads it from ambient state.
    """

    id: UUID
    email: str
    display_name: str | None = None
    role: str | None = None


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> TokenUser | None:
        """Return the user for a valid token, None otherwise."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a token for ``user``."""
        ...
