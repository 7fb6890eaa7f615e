"""Current-user API routes."""

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import (
    get_invitation_service,
    get_organization_service,
    get_profile_service,
)
from api.v1.routes.organizations import organization_response
from api.v1.schemas.common import MessageResponse
from api.v1.schemas.invitation import (
    PendingInvitationListResponse,
    PendingInvitationResponse,
)
from api.v1.schemas.organization import OrganizationListResponse
from api.v1.schemas.user import ProfileResponse, ProfileUpdate
from core.rate_limit import limiter
from domain.entities.profile import Profile
from domain.services.invitation_service import InvitationService
from domain.services.organization_service import OrganizationService
from domain.services.profile_service import ProfileService

router = APIRouter(prefix="/users", tags=["users"])


def profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
        job_title=profile.job_title,
        bio=profile.bio,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user profile",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_me(
    request: Request,
    user: CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Return the caller's profile, creating it from the token on first use."""
    profile = await service.get_or_create(user.id, user.email, user.display_name)
    return profile_response(profile)


@router.put(
    "/me",
    response_model=ProfileResponse,
    summary="Update current user profile",
    responses={
        200: {"description": "Profile updated"},
        401: {"description": "Not authenticated"},
        422: {"description": "Invalid profile fields"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_me(
    request: Request,
    body: ProfileUpdate,
    user: CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Update the caller's display name, job title and bio."""
    profile = await service.update(
        user.id,
        user.email,
        display_name=body.display_name,
        job_title=body.job_title,
        bio=body.bio,
    )
    return profile_response(profile)


@router.delete(
    "/me",
    response_model=MessageResponse,
    summary="Delete current user account",
    responses={
        200: {"description": "Local account and memberships removed"},
        401: {"description": "Not authenticated"},
        404: {"description": "No local account"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_me(
    request: Request,
    user: CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> MessageResponse:
    """Delete the caller's local account and memberships."""
    await service.delete_account(user.id)
    return MessageResponse(message="Account deleted")


@router.get(
    "/me/organizations",
    response_model=OrganizationListResponse,
    summary="List the caller's organizations",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_my_organizations(
    request: Request,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationListResponse:
    """Every organization the caller belongs to, with the caller's role."""
    rows = await service.get_user_organizations(user.id)
    data = [
        organization_response(
            organization,
            role.name if role else None,
            list(role.permissions) if role else None,
        )
        for organization, _membership, role in rows
    ]
    return OrganizationListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/me/invitations",
    response_model=PendingInvitationListResponse,
    summary="List pending invitations for the caller",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_my_invitations(
    request: Request,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> PendingInvitationListResponse:
    """Pending, unexpired invitations addressed to the caller's email."""
    pending = await service.get_pending_for_email(user.email)
    data = [
        PendingInvitationResponse(
            id=invitation.id,
            token=invitation.token,
            organization_id=invitation.organization_id,
            organization_name=organization.name if organization else "",
            organization_slug=organization.slug if organization else "",
            role_id=invitation.role_id,
            expires_at=invitation.expires_at,
        )
        for invitation, organization in pending
    ]
    return PendingInvitationListResponse(data=data, meta={"total": len(data)})
