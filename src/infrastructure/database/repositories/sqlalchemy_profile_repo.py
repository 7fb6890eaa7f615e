"""SQLAlchemy implementation of Profile repository."""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import UserNotFoundError
from domain.entities.profile import Profile
from infrastructure.database.models import (
    InvitationModel,
    ProfileModel,
    UserOrganizationModel,
)


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        stmt = select(ProfileModel).where(ProfileModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Profile | None:
        """Get a profile by (lowercased) email."""
        stmt = select(ProfileModel).where(ProfileModel.email == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_or_create(
        self, id: UUID, email: str, display_name: str | None = None
    ) -> Profile:
        """Return the profile for ``id``, creating it from token claims if missing.

        Emails are unique locally. A profile left behind by an earlier
        identity with the same email (an account recreated at the identity
        provider) is deleted, with its memberships, before the new one is
        inserted.
        """
        existing = await self.get(id)
        if existing:
            return existing

        email = email.strip().lower()
        stale = await self.get_by_email(email)
        if stale:
            await self.delete(stale.id)

        model = ProfileModel(
            id=id,
            email=email,
            display_name=display_name,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, profile: Profile) -> Profile:
        """Update the editable fields of a profile."""
        stmt = select(ProfileModel).where(ProfileModel.id == profile.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise UserNotFoundError(str(profile.id))

        model.display_name = profile.display_name
        model.job_title = profile.job_title
        model.bio = profile.bio
        model.updated_at = profile.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> None:
        """Delete a profile together with its memberships.

        Invitations the user sent are kept and lose their inviter.
        """
        await self._session.execute(
            delete(UserOrganizationModel).where(UserOrganizationModel.user_id == id)
        )
        await self._session.execute(
            update(InvitationModel).where(InvitationModel.invited_by == id).values(invited_by=None)
        )
        await self._session.execute(delete(ProfileModel).where(ProfileModel.id == id))
        await self._session.flush()

    def _to_entity(self, model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            email=model.email,
            display_name=model.display_name,
            avatar_url=model.avatar_url,
            job_title=model.job_title,
            bio=model.bio,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
