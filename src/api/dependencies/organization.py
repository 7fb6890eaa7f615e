"""Organization access dependencies for FastAPI.

Resolve ``{slug}`` from the path, verify the caller's membership and,
optionally, a permission of the caller's role in that organization.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Callable, Coroutine

from fastapi import Depends

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_organization_service
from domain.entities.organization import Organization, Permissions, Role
from domain.services.organization_service import OrganizationService
from infrastructure.auth.provider import TokenUser


@dataclass
class OrganizationAccess:
    """The organization a request targets and the caller's role in it."""

    organization: Organization
    role: Role
    user: TokenUser


def require_organization_access(
    permission: str | None = None,
) -> Callable[..., Coroutine[Any, Any, OrganizationAccess]]:
    """Build a dependency enforcing membership and an optional permission."""

    async def dependency(
        slug: str,
        user: CurrentUser,
        service: OrganizationService = Depends(get_organization_service),
    ) -> OrganizationAccess:
        if permission is None:
            organization, role = await service.get_for_member(slug, user.id)
        else:
            organization, role = await service.require_permission(slug, user.id, permission)
        return OrganizationAccess(organization=organization, role=role, user=user)

    return dependency


OrganizationMember = Annotated[OrganizationAccess, Depends(require_organization_access())]
InvitationManager = Annotated[
    OrganizationAccess, Depends(require_organization_access(Permissions.INVITE_USERS))
]
OrganizationManager = Annotated[
    OrganizationAccess, Depends(require_organization_access(Permissions.MANAGE_ORGANIZATION))
]
