"""Profile repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for user profiles."""

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        ...

    async def get_by_email(self, email: str) -> Profile | None:
        """Get a profile by (lowercased) email."""
        ...

    async def get_or_create(
        self, id: UUID, email: str, display_name: str | None = None
    ) -> Profile:
        """Return the profile for ``id``, creating it from token claims if missing.

        A stale profile holding the same email under another id is replaced.
        """
        ...

    async def update(self, profile: Profile) -> Profile:
        """Update the editable fields of a profile."""
        ...

    async def delete(self, id: UUID) -> None:
        """Delete a profile together with its memberships."""
        ...
