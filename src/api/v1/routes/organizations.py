"""Organization API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.dependencies.organization import (
    InvitationManager,
    OrganizationManager,
    OrganizationMember,
)
from api.v1.dependencies import get_invitation_service, get_organization_service
from api.v1.schemas.common import MessageResponse
from api.v1.schemas.invitation import AccessRequestResponse
from api.v1.schemas.organization import (
    JoinOrganizationRequest,
    MemberListResponse,
    MemberResponse,
    OrganizationCreate,
    OrganizationDetailResponse,
    OrganizationLookupResponse,
    OrganizationResponse,
    OrganizationUpdate,
    SlugAvailabilityResponse,
)
from core.rate_limit import limiter
from domain.entities.organization import (
    ADMIN_PERMISSIONS,
    ADMIN_ROLE_NAME,
    MEMBER_PERMISSIONS,
    MEMBER_ROLE_NAME,
    Organization,
    Role,
    suggest_organization_name,
)
from domain.services.invitation_service import InvitationService
from domain.services.organization_service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


def organization_response(
    organization: Organization,
    role: str | None = None,
    permissions: list[str] | None = None,
) -> OrganizationResponse:
    return OrganizationResponse(
        id=organization.id,
        name=organization.name,
        slug=organization.slug,
        domain=organization.domain,
        role=role,
        permissions=permissions or [],
        created_at=organization.created_at,
        updated_at=organization.updated_at,
    )


def _with_role(organization: Organization, role: Role) -> OrganizationResponse:
    return organization_response(organization, role.name, list(role.permissions))


@router.post(
    "",
    response_model=OrganizationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an organization",
    responses={
        201: {"description": "Organization created, caller is Admin"},
        400: {"description": "Invalid slug, or slug/domain already taken"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_organization(
    request: Request,
    body: OrganizationCreate,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationDetailResponse:
    """Create an organization with default Admin and Member roles."""
    organization = await service.create(
        user_id=user.id,
        user_email=user.email,
        name=body.name,
        slug=body.slug,
        domain=body.domain,
        display_name=user.display_name,
    )
    return OrganizationDetailResponse(
        data=organization_response(organization, ADMIN_ROLE_NAME, list(ADMIN_PERMISSIONS))
    )


@router.get(
    "/check-slug/{slug}",
    response_model=SlugAvailabilityResponse,
    summary="Check slug availability",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def check_slug(
    request: Request,
    slug: str,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> SlugAvailabilityResponse:
    """Whether a slug is well-formed and not yet taken."""
    return SlugAvailabilityResponse(slug=slug, available=await service.is_slug_available(slug))


@router.get(
    "/domain/{domain}",
    response_model=OrganizationLookupResponse,
    summary="Find organization by email domain",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def find_by_domain(
    request: Request,
    domain: str,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationLookupResponse:
    """Find the organization claiming a domain, or suggest a name for a new one."""
    organization = await service.find_by_domain(domain)
    if organization is None:
        return OrganizationLookupResponse(suggested_name=suggest_organization_name(domain))
    return OrganizationLookupResponse(data=organization_response(organization))


@router.post(
    "/join",
    response_model=OrganizationDetailResponse,
    summary="Join organization by email domain",
    responses={
        200: {"description": "Joined as Member"},
        400: {"description": "Already a member"},
        403: {"description": "Email domain does not match"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def join_organization(
    request: Request,
    body: JoinOrganizationRequest,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationDetailResponse:
    """Join an organization whose domain matches the caller's email."""
    organization = await service.join(
        organization_id=body.organization_id,
        user_id=user.id,
        user_email=user.email,
        display_name=user.display_name,
    )
    return OrganizationDetailResponse(
        data=organization_response(organization, MEMBER_ROLE_NAME, list(MEMBER_PERMISSIONS))
    )


@router.get(
    "/{slug}",
    response_model=OrganizationDetailResponse,
    summary="Get organization details",
    responses={
        200: {"description": "Organization with the caller's role"},
        403: {"description": "Not a member"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_organization(
    request: Request,
    access: OrganizationMember,
) -> OrganizationDetailResponse:
    """Get an organization the caller belongs to."""
    return OrganizationDetailResponse(data=_with_role(access.organization, access.role))


@router.put(
    "/{slug}",
    response_model=OrganizationDetailResponse,
    summary="Update organization",
    responses={
        200: {"description": "Organization updated"},
        400: {"description": "Domain already claimed"},
        403: {"description": "Missing manage_organization"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_organization(
    request: Request,
    body: OrganizationUpdate,
    access: OrganizationManager,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationDetailResponse:
    """Update an organization's name and/or domain."""
    organization = await service.update(
        access.organization.id,
        name=body.name,
        domain=body.domain,
    )
    return OrganizationDetailResponse(data=_with_role(organization, access.role))


@router.get(
    "/{slug}/members",
    response_model=MemberListResponse,
    summary="List organization members",
    responses={
        200: {"description": "Members with their roles"},
        403: {"description": "Not a member"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    access: OrganizationMember,
    service: OrganizationService = Depends(get_organization_service),
) -> MemberListResponse:
    """List the members of an organization."""
    members = await service.get_members(access.organization.id)
    data = [
        MemberResponse(
            user_id=membership.user_id,
            email=profile.email if profile else "",
            display_name=profile.display_name if profile else None,
            role_id=membership.role_id,
            role=role.name if role else "",
            joined_at=membership.joined_at,
        )
        for membership, profile, role in members
    ]
    return MemberListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/{slug}/request-access",
    response_model=AccessRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request access to an organization",
    responses={
        201: {"description": "Request recorded for admin review"},
        400: {"description": "Already a member or a request is pending"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def request_access(
    request: Request,
    slug: str,
    user: CurrentUser,
    organizations: OrganizationService = Depends(get_organization_service),
    invitations: InvitationService = Depends(get_invitation_service),
) -> AccessRequestResponse:
    """Ask an organization's admins to let the caller in."""
    organization = await organizations.get_by_slug(slug)
    access_request = await invitations.request_access(
        organization_id=organization.id,
        user_id=user.id,
        user_email=user.email,
        display_name=user.display_name,
    )
    return AccessRequestResponse(
        id=access_request.id,
        organization_id=access_request.organization_id,
        email=access_request.email,
        status=access_request.status.value,
        created_at=access_request.created_at,
    )


@router.post(
    "/{slug}/requests/{invitation_id}/approve",
    response_model=MessageResponse,
    summary="Approve access request",
    responses={
        200: {"description": "Requester added as Member"},
        400: {"description": "Request expired or already resolved"},
        403: {"description": "Missing invite_users"},
        404: {"description": "Request not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def approve_request(
    request: Request,
    invitation_id: UUID,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    """Approve a pending access request."""
    await service.approve_request(access.organization.id, invitation_id)
    return MessageResponse(message="Access request approved")


@router.post(
    "/{slug}/requests/{invitation_id}/reject",
    response_model=MessageResponse,
    summary="Reject access request",
    responses={
        200: {"description": "Request declined"},
        400: {"description": "Request expired or already resolved"},
        403: {"description": "Missing invite_users"},
        404: {"description": "Request not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def reject_request(
    request: Request,
    invitation_id: UUID,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    """Reject a pending access request."""
    await service.reject_request(access.organization.id, invitation_id)
    return MessageResponse(message="Access request rejected")
