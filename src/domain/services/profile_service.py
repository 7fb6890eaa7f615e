"""Profile service layer: the local mirror of identity-provider users."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import UserNotFoundError
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


def _clean(value: str) -> str | None:
    return value.strip() or None


class ProfileService:
    """Service layer for the current user's profile and account."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def get_or_create(
        self, user_id: UUID, email: str, display_name: str | None = None
    ) -> Profile:
        """Mirror the token user into a local profile."""
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get_or_create(user_id, email, display_name)
            await uow.commit()
            return profile

    async def update(
        self,
        user_id: UUID,
        email: str,
        display_name: str | None = None,
        job_title: str | None = None,
        bio: str | None = None,
    ) -> Profile:
        """Update the caller's profile details.

        ``None`` leaves a field unchanged; an empty ``job_title`` or ``bio``
        clears it. The profile is created from the token first if needed.
        """
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get_or_create(user_id, email, display_name)

            if display_name is not None:
                profile.display_name = display_name.strip()
            if job_title is not None:
                profile.job_title = _clean(job_title)
            if bio is not None:
                profile.bio = _clean(bio)

            profile.updated_at = datetime.utcnow()
            updated = await uow.profiles.update(profile)
            await uow.commit()

            logger.info("profile_updated", user_id=str(user_id))
            return updated

    async def delete_account(self, user_id: UUID) -> None:
        """Remove the local user and every membership it holds.

        The identity-provider account is managed elsewhere and is left intact.

        Raises:
            UserNotFoundError: If there is no local profile for the user.
        """
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get(user_id)
            if not profile:
                raise UserNotFoundError(str(user_id))

            memberships = await uow.organizations.get_all_for_user(user_id)
            await uow.profiles.delete(user_id)
            await uow.commit()

            logger.info(
                "account_deleted",
                user_id=str(user_id),
                memberships_removed=len(memberships),
            )
