"""SQLAlchemy implementation of Organization repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    AlreadyAMemberError,
    OrganizationDomainTakenError,
    OrganizationNotFoundError,
    OrganizationSlugTakenError,
)
from domain.entities.organization import Membership, Organization
from infrastructure.database.models import (
    OrganizationModel,
    ProfileModel,
    UserOrganizationModel,
)
from infrastructure.database.repositories.integrity import is_unique_violation


class SQLAlchemyOrganizationRepository:
    """SQLAlchemy implementation of IOrganizationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_many(self, ids: list[UUID]) -> list[Organization]:
        """Get several organizations by ID in one query."""
        if not ids:
            return []
        stmt = select(OrganizationModel).where(OrganizationModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_by_slug(self, slug: str) -> Organization | None:
        """Get an organization by slug."""
        stmt = select(OrganizationModel).where(OrganizationModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_domain(self, domain: str) -> Organization | None:
        """Get an organization by its email domain."""
        stmt = select(OrganizationModel).where(OrganizationModel.domain == domain)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all_for_user(self, user_id: UUID) -> list[tuple[Organization, Membership]]:
        """Get every organization a user belongs to, with the membership row."""
        stmt = (
            select(OrganizationModel, UserOrganizationModel)
            .join(
                UserOrganizationModel,
                UserOrganizationModel.organization_id == OrganizationModel.id,
            )
            .where(UserOrganizationModel.user_id == user_id)
            .order_by(UserOrganizationModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [
            (self._to_entity(org), self._member_to_entity(member))
            for org, member in result.all()
        ]

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        model = self._to_model(organization)
        self._session.add(model)
        await self._flush_organization(organization)
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, organization: Organization) -> Organization:
        """Update an existing organization."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == organization.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise OrganizationNotFoundError(str(organization.id))

        model.name = organization.name
        model.slug = organization.slug
        model.domain = organization.domain
        model.updated_at = organization.updated_at

        await self._flush_organization(organization)
        return self._to_entity(model)

    async def get_member(self, organization_id: UUID, user_id: UUID) -> Membership | None:
        """Get a membership by organization and user IDs."""
        stmt = select(UserOrganizationModel).where(
            UserOrganizationModel.organization_id == organization_id,
            UserOrganizationModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._member_to_entity(model) if model else None

    async def get_member_by_email(self, organization_id: UUID, email: str) -> Membership | None:
        """Get a membership by the member's profile email."""
        stmt = (
            select(UserOrganizationModel)
            .join(ProfileModel, ProfileModel.id == UserOrganizationModel.user_id)
            .where(
                UserOrganizationModel.organization_id == organization_id,
                ProfileModel.email == email,
            )
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._member_to_entity(model) if model else None

    async def get_members(self, organization_id: UUID) -> list[Membership]:
        """Get all memberships of an organization."""
        stmt = (
            select(UserOrganizationModel)
            .where(UserOrganizationModel.organization_id == organization_id)
            .order_by(UserOrganizationModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(model) for model in result.scalars()]

    async def add_member(self, membership: Membership) -> Membership:
        """Add a user to an organization."""
        model = self._member_to_model(membership)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise AlreadyAMemberError(str(membership.user_id)) from exc
            raise
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def _flush_organization(self, organization: Organization) -> None:
        """Flush, mapping slug/domain unique violations to conflicts."""
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            if "domain" in str(exc.orig).lower() and organization.domain:
                raise OrganizationDomainTakenError(organization.domain) from exc
            raise OrganizationSlugTakenError(organization.slug) from exc

    def _to_entity(self, model: OrganizationModel) -> Organization:
        """Convert ORM model to domain entity."""
        return Organization(
            id=model.id,
            name=model.name,
            slug=model.slug,
            domain=model.domain,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Organization) -> OrganizationModel:
        """Convert domain entity to ORM model."""
        return OrganizationModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            domain=entity.domain,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(self, model: UserOrganizationModel) -> Membership:
        """Convert membership ORM model to domain entity."""
        return Membership(
            user_id=model.user_id,
            organization_id=model.organization_id,
            role_id=model.role_id,
            joined_at=model.joined_at,
        )

    def _member_to_model(self, entity: Membership) -> UserOrganizationModel:
        """Convert membership domain entity to ORM model."""
        return UserOrganizationModel(
            user_id=entity.user_id,
            organization_id=entity.organization_id,
            role_id=entity.role_id,
            joined_at=entity.joined_at,
        )
