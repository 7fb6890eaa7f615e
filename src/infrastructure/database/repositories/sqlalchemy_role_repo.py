"""SQLAlchemy implementation of Role repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.organization import Role
from infrastructure.database.models import RoleModel


class SQLAlchemyRoleRepository:
    """SQLAlchemy implementation of IRoleRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Role | None:
        """Get a role by ID."""
        stmt = select(RoleModel).where(RoleModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_name(self, organization_id: UUID, name: str) -> Role | None:
        """Get a role by its name within an organization."""
        stmt = select(RoleModel).where(
            RoleModel.organization_id == organization_id,
            RoleModel.name == name,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_for_organization(self, organization_id: UUID) -> list[Role]:
        """Get all roles defined for an organization."""
        stmt = (
            select(RoleModel)
            .where(RoleModel.organization_id == organization_id)
            .order_by(RoleModel.name)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, role: Role) -> Role:
        """Create a new role."""
        model = RoleModel(
            id=role.id,
            organization_id=role.organization_id,
            name=role.name,
            permissions=list(role.permissions),
            created_at=role.created_at,
            updated_at=role.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    def _to_entity(self, model: RoleModel) -> Role:
        """Convert ORM model to domain entity."""
        return Role(
            id=model.id,
            organization_id=model.organization_id,
            name=model.name,
            permissions=list(model.permissions or []),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
