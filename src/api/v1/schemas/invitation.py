"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.entities.organization import is_valid_email


class CreateInvitationRequest(BaseModel):
    """Schema for inviting an email address to an organization."""

    email: str = Field(..., min_length=3, max_length=255)
    role_id: UUID | None = Field(
        None,
        description="Role granted on acceptance. Defaults to the Member role.",
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and sanity-check the email."""
        v = v.strip().lower()
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v


class InvitationResponse(BaseModel):
    """Schema for Invitation response (admin view)."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "organization_id": "456e4567-e89b-12d3-a456-426614174000",
                "email": "user@example.com",
                "role_id": "789e4567-e89b-12d3-a456-426614174000",
                "type": "INVITE",
                "status": "pending",
                "invited_by": "999e4567-e89b-12d3-a456-426614174000",
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-08T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    organization_id: UUID
    email: str
    role_id: UUID
    type: str
    status: str
    invited_by: UUID | None = None
    created_at: datetime
    expires_at: datetime
    updated_at: datetime


class InvitationLinkResponse(BaseModel):
    """Invitation plus the link the invitee opens. Returned on create and resend."""

    data: InvitationResponse
    token: str
    invitation_url: str


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InvitationDetailResponse(BaseModel):
    """Public view of a valid invitation, looked up by token."""

    id: UUID
    email: str
    status: str
    type: str
    expires_at: datetime
    organization_id: UUID
    organization_name: str = ""
    organization_slug: str = ""
    role_id: UUID
    role_name: str = ""
    email_matches: bool | None = Field(
        None, description="Whether the caller's email matches; null when anonymous"
    )


class PendingInvitationResponse(BaseModel):
    """An invitation addressed to the current user."""

    id: UUID
    token: str
    organization_id: UUID
    organization_name: str = ""
    organization_slug: str = ""
    role_id: UUID
    expires_at: datetime


class PendingInvitationListResponse(BaseModel):
    """Invitations waiting for the current user."""

    data: list[PendingInvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class AccessRequestResponse(BaseModel):
    """Schema for a self-service access request."""

    id: UUID
    organization_id: UUID
    email: str
    status: str
    created_at: datetime
    message: str = "Access request submitted"
