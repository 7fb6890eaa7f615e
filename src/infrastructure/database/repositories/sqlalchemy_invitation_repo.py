"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DuplicateInvitationError, InvitationNotFoundError
from domain.entities.invitation import Invitation, InvitationStatus, InvitationType
from infrastructure.database.models import InvitationModel
from infrastructure.database.repositories.integrity import is_unique_violation


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        model = self._to_model(invitation)
        self._session.add(model)
        await self._flush(invitation.email)
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_by_token(self, token: str) -> Invitation | None:
        """Get an invitation by its token."""
        stmt = select(InvitationModel).where(InvitationModel.token == token)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_for_organization(self, organization_id: UUID) -> list[Invitation]:
        """Get all invitations for an organization, newest first."""
        stmt = (
            select(InvitationModel)
            .where(InvitationModel.organization_id == organization_id)
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_email(self, email: str, now: datetime) -> list[Invitation]:
        """Get pending, unexpired invitations addressed to an email."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.email == email,
                InvitationModel.type == InvitationType.INVITE.value,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > now,
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_organization_email(
        self, organization_id: UUID, email: str
    ) -> Invitation | None:
        """Get the pending invitation for an organization and email, if any.

        Expiry is not filtered here: a pending row past its expiry still
        occupies the single-pending slot until it is transitioned.
        """
        stmt = select(InvitationModel).where(
            InvitationModel.organization_id == organization_id,
            InvitationModel.email == email,
            InvitationModel.status == InvitationStatus.PENDING.value,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update_status(
        self, id: UUID, status: InvitationStatus, updated_at: datetime | None = None
    ) -> Invitation:
        """Update the status of an invitation."""
        model = await self._require_model(id)
        model.status = status.value
        model.updated_at = updated_at or datetime.utcnow()

        await self._flush(model.email)
        return self._to_entity(model)

    async def regenerate_token(
        self, id: UUID, token: str, expires_at: datetime, updated_at: datetime | None = None
    ) -> Invitation:
        """Replace token and expiry and force the status back to pending."""
        model = await self._require_model(id)
        model.token = token
        model.expires_at = expires_at
        model.status = InvitationStatus.PENDING.value
        model.updated_at = updated_at or datetime.utcnow()

        await self._flush(model.email)
        return self._to_entity(model)

    async def delete(self, id: UUID) -> None:
        """Hard-delete an invitation."""
        model = await self._require_model(id)
        await self._session.delete(model)
        await self._session.flush()

    async def _get_model(self, id: UUID) -> InvitationModel | None:
        stmt = select(InvitationModel).where(InvitationModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _require_model(self, id: UUID) -> InvitationModel:
        model = await self._get_model(id)
        if not model:
            raise InvitationNotFoundError(str(id))
        return model

    async def _flush(self, email: str) -> None:
        """Flush pending changes, translating unique violations to a conflict."""
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateInvitationError(email) from exc
            raise

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            organization_id=model.organization_id,
            email=model.email,
            role_id=model.role_id,
            invited_by=model.invited_by,
            token=model.token,
            type=InvitationType(model.type),
            status=InvitationStatus(model.status),
            created_at=model.created_at,
            expires_at=model.expires_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            organization_id=entity.organization_id,
            email=entity.email,
            role_id=entity.role_id,
            invited_by=entity.invited_by,
            token=entity.token,
            type=entity.type.value,
            status=entity.status.value,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            updated_at=entity.updated_at,
        )
