"""Organization service layer: tenants, default roles and memberships."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyAMemberError,
    AuthorizationError,
    InsufficientPermissionsError,
    NotAMemberError,
    OrganizationDomainTakenError,
    OrganizationNotFoundError,
    OrganizationSlugTakenError,
    RoleNotFoundError,
    ValidationError,
)
from domain.entities.organization import (
    ADMIN_ROLE_NAME,
    DEFAULT_ROLE_PERMISSIONS,
    MEMBER_ROLE_NAME,
    Membership,
    Organization,
    Role,
    extract_domain,
    generate_slug,
    is_valid_slug,
)
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

# Consumer mail providers are never claimed as an organization domain
PUBLIC_EMAIL_DOMAINS = frozenset(
    {
        "aol.com",
        "gmail.com",
        "googlemail.com",
        "hotmail.com",
        "icloud.com",
        "live.com",
        "outlook.com",
        "proton.me",
        "protonmail.com",
        "yahoo.com",
    }
)


async def get_or_create_role(uow: IUnitOfWork, organization_id: UUID, name: str) -> Role:
    """Find a default role for an organization, creating it if missing."""
    role = await uow.roles.get_by_name(organization_id, name)
    if role:
        return role
    return await uow.roles.create(
        Role(
            organization_id=organization_id,
            name=name,
            permissions=list(DEFAULT_ROLE_PERMISSIONS.get(name, [])),
        )
    )


async def add_user_to_organization(
    uow: IUnitOfWork,
    user_id: UUID,
    organization_id: UUID,
    role_id: UUID,
    joined_at: datetime | None = None,
) -> Membership:
    """Attach a user to an organization with one of that organization's roles.

    Runs inside the caller's unit of work; committing is left to the caller.

    Raises:
        RoleNotFoundError: If the role does not belong to the organization.
        AlreadyAMemberError: If the membership already exists.
    """
    role = await uow.roles.get(role_id)
    if not role or role.organization_id != organization_id:
        raise RoleNotFoundError(str(role_id))

    membership = await uow.organizations.add_member(
        Membership(
            user_id=user_id,
            organization_id=organization_id,
            role_id=role_id,
            joined_at=joined_at or datetime.utcnow(),
        )
    )
    logger.info(
        "member_added",
        organization_id=str(organization_id),
        user_id=str(user_id),
        role=role.name,
    )
    return membership


class OrganizationService:
    """Service layer for organization and membership business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create(
        self,
        user_id: UUID,
        user_email: str,
        name: str,
        slug: str | None = None,
        domain: str | None = None,
        display_name: str | None = None,
    ) -> Organization:
        """Create an organization, seed its default roles and attach the creator as Admin.

        Args:
            user_id: The creating user.
            user_email: The creating user's email; its domain becomes the
                organization domain when none is given and it is not a
                public mail provider.
            name: Display name.
            slug: Explicit slug; generated from ``name`` when omitted.
            domain: Explicit email domain claimed by the organization.
            display_name: Creator's display name, used if a profile is created.

        Raises:
            ValidationError: If the slug is malformed.
            OrganizationSlugTakenError: If the slug is already in use.
            OrganizationDomainTakenError: If an explicit domain is already claimed.
        """
        slug = (slug or generate_slug(name)).strip().lower()
        if not is_valid_slug(slug):
            raise ValidationError(
                "Slug must be 2-50 characters of lowercase letters, numbers and hyphens",
                field="slug",
            )

        async with self._uow_factory() as uow:
            if await uow.organizations.get_by_slug(slug):
                raise OrganizationSlugTakenError(slug)

            if domain:
                domain = domain.strip().lower()
                if await uow.organizations.get_by_domain(domain):
                    raise OrganizationDomainTakenError(domain)
            else:
                domain = await self._default_domain(uow, user_email)

            organization = await uow.organizations.create(
                Organization(name=name.strip(), slug=slug, domain=domain)
            )

            admin_role = await get_or_create_role(uow, organization.id, ADMIN_ROLE_NAME)
            await get_or_create_role(uow, organization.id, MEMBER_ROLE_NAME)

            await uow.profiles.get_or_create(user_id, user_email, display_name)
            await uow.organizations.add_member(
                Membership(
                    user_id=user_id,
                    organization_id=organization.id,
                    role_id=admin_role.id,
                )
            )

            await uow.commit()
            logger.info(
                "organization_created",
                organization_id=str(organization.id),
                slug=organization.slug,
                user_id=str(user_id),
            )
            return organization

    async def get_by_slug(self, slug: str) -> Organization:
        """Get an organization by slug without a membership check."""
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get_by_slug(slug)
            if not organization:
                raise OrganizationNotFoundError(slug)
            return organization

    async def get_for_member(self, slug: str, user_id: UUID) -> tuple[Organization, Role]:
        """Get an organization and the caller's role, verifying membership."""
        async with self._uow_factory() as uow:
            return await self._load_membership(uow, slug, user_id)

    async def require_permission(
        self, slug: str, user_id: UUID, permission: str
    ) -> tuple[Organization, Role]:
        """Verify the user's role in the organization grants ``permission``.

        Raises:
            OrganizationNotFoundError: If the slug does not resolve.
            NotAMemberError: If the user is not a member.
            InsufficientPermissionsError: If the role lacks the permission.
        """
        async with self._uow_factory() as uow:
            organization, role = await self._load_membership(uow, slug, user_id)
            if not role.has_permission(permission):
                raise InsufficientPermissionsError(permission)
            return organization, role

    async def update(
        self,
        organization_id: UUID,
        name: str | None = None,
        domain: str | None = None,
    ) -> Organization:
        """Update name and/or domain. Authorization happens at the API boundary."""
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get(organization_id)
            if not organization:
                raise OrganizationNotFoundError(str(organization_id))

            if name is not None:
                organization.name = name.strip()
            if domain is not None:
                domain = domain.strip().lower() or None
                if domain and domain != organization.domain:
                    claimed = await uow.organizations.get_by_domain(domain)
                    if claimed and claimed.id != organization.id:
                        raise OrganizationDomainTakenError(domain)
                organization.domain = domain

            organization.updated_at = datetime.utcnow()
            updated = await uow.organizations.update(organization)
            await uow.commit()
            return updated

    async def is_slug_available(self, slug: str) -> bool:
        """Check whether a slug is well-formed and unused."""
        slug = slug.strip().lower()
        if not is_valid_slug(slug):
            return False
        async with self._uow_factory() as uow:
            return await uow.organizations.get_by_slug(slug) is None

    async def find_by_domain(self, domain: str) -> Organization | None:
        """Find the organization claiming an email domain."""
        async with self._uow_factory() as uow:
            return await uow.organizations.get_by_domain(domain.strip().lower())

    async def join(
        self,
        organization_id: UUID,
        user_id: UUID,
        user_email: str,
        display_name: str | None = None,
    ) -> Organization:
        """Join an organization whose domain matches the user's email domain.

        Raises:
            OrganizationNotFoundError: If the organization does not exist.
            AuthorizationError: If the email domain does not match.
            AlreadyAMemberError: If the user already belongs to it.
        """
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get(organization_id)
            if not organization:
                raise OrganizationNotFoundError(str(organization_id))

            if not organization.domain or extract_domain(user_email) != organization.domain:
                raise AuthorizationError(
                    "Your email domain does not match this organization; request access instead"
                )

            if await uow.organizations.get_member(organization.id, user_id):
                raise AlreadyAMemberError(str(user_id))

            member_role = await get_or_create_role(uow, organization.id, MEMBER_ROLE_NAME)
            await uow.profiles.get_or_create(user_id, user_email, display_name)
            await add_user_to_organization(uow, user_id, organization.id, member_role.id)
            await uow.commit()
            return organization

    async def get_members(
        self, organization_id: UUID
    ) -> list[tuple[Membership, Profile | None, Role | None]]:
        """List members with their profile and role."""
        async with self._uow_factory() as uow:
            members = await uow.organizations.get_members(organization_id)
            roles = {role.id: role for role in await uow.roles.get_for_organization(organization_id)}
            return [
                (member, await uow.profiles.get(member.user_id), roles.get(member.role_id))
                for member in members
            ]

    async def get_user_organizations(
        self, user_id: UUID
    ) -> list[tuple[Organization, Membership, Role | None]]:
        """List every organization the user belongs to, with their role."""
        async with self._uow_factory() as uow:
            rows = await uow.organizations.get_all_for_user(user_id)
            return [
                (organization, membership, await uow.roles.get(membership.role_id))
                for organization, membership in rows
            ]

    # --- Internal helpers ---

    async def _load_membership(
        self, uow: IUnitOfWork, slug: str, user_id: UUID
    ) -> tuple[Organization, Role]:
        organization = await uow.organizations.get_by_slug(slug)
        if not organization:
            raise OrganizationNotFoundError(slug)

        member = await uow.organizations.get_member(organization.id, user_id)
        if not member:
            raise NotAMemberError(slug)

        role = await uow.roles.get(member.role_id)
        if not role:
            raise RoleNotFoundError(str(member.role_id))
        return organization, role

    @staticmethod
    async def _default_domain(uow: IUnitOfWork, email: str) -> str | None:
        """Claim the creator's email domain unless it is public or already claimed."""
        domain = extract_domain(email)
        if not domain or domain in PUBLIC_EMAIL_DOMAINS:
            return None
        if await uow.organizations.get_by_domain(domain):
            return None
        return domain
