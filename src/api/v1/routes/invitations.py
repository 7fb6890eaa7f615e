"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser, OptionalUser
from api.dependencies.organization import InvitationManager
from api.v1.dependencies import get_invitation_service
from api.v1.routes.organizations import organization_response
from api.v1.schemas.common import MessageResponse
from api.v1.schemas.invitation import (
    CreateInvitationRequest,
    InvitationDetailResponse,
    InvitationLinkResponse,
    InvitationListResponse,
    InvitationResponse,
)
from api.v1.schemas.organization import OrganizationDetailResponse
from core.config import settings
from core.exceptions import InvitationInvalidError
from core.rate_limit import limiter
from domain.entities.invitation import Invitation
from domain.services.invitation_service import InvitationService, normalize_email

# Token-addressed routes (the invitee's side)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)

# Organization-scoped routes (the admin's side)
organization_invitations_router = APIRouter(
    prefix="/organizations/{slug}/invitations",
    tags=["invitations"],
)


def invitation_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        organization_id=invitation.organization_id,
        email=invitation.email,
        role_id=invitation.role_id,
        type=invitation.type.value,
        status=invitation.status.value,
        invited_by=invitation.invited_by,
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
        updated_at=invitation.updated_at,
    )


def _link_response(invitation: Invitation) -> InvitationLinkResponse:
    return InvitationLinkResponse(
        data=invitation_response(invitation),
        token=invitation.token,
        invitation_url=settings.invitation_url(invitation.token),
    )


# --- Token-addressed routes ---


@invitations_router.get(
    "/{token}",
    response_model=InvitationDetailResponse,
    summary="Get invitation details",
    responses={
        200: {"description": "Invitation is valid"},
        400: {"description": "Invitation expired or already resolved"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_invitation(
    request: Request,
    token: str,
    user: OptionalUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Look up an invitation by token. Authentication is optional."""
    result = await service.validate(token)
    if not result.valid:
        raise InvitationInvalidError(result.reason or "", result.invitation.status.value)

    invitation = result.invitation
    return InvitationDetailResponse(
        id=invitation.id,
        email=invitation.email,
        status=invitation.status.value,
        type=invitation.type.value,
        expires_at=invitation.expires_at,
        organization_id=invitation.organization_id,
        organization_name=result.organization.name if result.organization else "",
        organization_slug=result.organization.slug if result.organization else "",
        role_id=invitation.role_id,
        role_name=result.role.name if result.role else "",
        email_matches=(
            normalize_email(user.email) == invitation.email if user is not None else None
        ),
    )


@invitations_router.post(
    "/{token}",
    response_model=OrganizationDetailResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, user added to the organization"},
        400: {"description": "Invitation expired, resolved, or already a member"},
        401: {"description": "Not authenticated"},
        403: {"description": "Invitation is for a different email"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    token: str,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> OrganizationDetailResponse:
    """Accept an invitation addressed to the authenticated user's email."""
    organization = await service.accept(
        token=token,
        user_id=user.id,
        user_email=user.email,
        display_name=user.display_name,
    )
    return OrganizationDetailResponse(data=organization_response(organization))


@invitations_router.delete(
    "/{token}",
    response_model=MessageResponse,
    summary="Decline invitation",
    responses={
        200: {"description": "Invitation declined"},
        400: {"description": "Invitation expired or already resolved"},
        401: {"description": "Not authenticated"},
        403: {"description": "Invitation is for a different email"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def decline_invitation(
    request: Request,
    token: str,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    """Decline an invitation addressed to the authenticated user's email."""
    await service.decline(token=token, user_email=user.email)
    return MessageResponse(message="Invitation declined")


# --- Organization-scoped routes ---


@organization_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List organization invitations",
    responses={
        200: {"description": "All invitations and access requests"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member or missing invite_users"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_invitations(
    request: Request,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List every invitation of the organization, newest first."""
    invitations = await service.list_for_organization(access.organization.id)
    data = [invitation_response(invitation) for invitation in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@organization_invitations_router.post(
    "",
    response_model=InvitationLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invitation",
    responses={
        201: {"description": "Invitation created"},
        400: {"description": "Already a member or already invited"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member or missing invite_users"},
        404: {"description": "Organization or role not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    body: CreateInvitationRequest,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationLinkResponse:
    """Invite an email address. The response carries the invitation link."""
    invitation = await service.create_invitation(
        organization_id=access.organization.id,
        email=body.email,
        role_id=body.role_id,
        invited_by=access.user.id,
    )
    return _link_response(invitation)


@organization_invitations_router.put(
    "/{invitation_id}",
    response_model=InvitationLinkResponse,
    summary="Resend invitation",
    responses={
        200: {"description": "New token and expiry issued"},
        400: {"description": "Invitation already accepted"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member or missing invite_users"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def resend_invitation(
    request: Request,
    invitation_id: UUID,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationLinkResponse:
    """Regenerate the token and expiry. The previous link stops working."""
    invitation = await service.resend(access.organization.id, invitation_id)
    return _link_response(invitation)


@organization_invitations_router.delete(
    "/{invitation_id}",
    response_model=MessageResponse,
    summary="Cancel invitation",
    responses={
        200: {"description": "Invitation deleted"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member or missing invite_users"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def cancel_invitation(
    request: Request,
    invitation_id: UUID,
    access: InvitationManager,
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    """Delete an invitation in any status."""
    await service.cancel(access.organization.id, invitation_id)
    return MessageResponse(message="Invitation cancelled")
