"""Pydantic schemas for Organization API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrganizationCreate(BaseModel):
    """Schema for creating an Organization."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=50)
    domain: str | None = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class OrganizationUpdate(BaseModel):
    """Schema for updating an Organization (all fields optional)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    domain: str | None = Field(None, max_length=255)


class JoinOrganizationRequest(BaseModel):
    """Schema for joining an organization by email domain."""

    organization_id: UUID


class OrganizationResponse(BaseModel):
    """Schema for Organization response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Acme Inc",
                "slug": "acme-inc",
                "domain": "acme.com",
                "role": "Admin",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    slug: str
    domain: str | None = None
    role: str | None = None
    permissions: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OrganizationDetailResponse(BaseModel):
    """Single Organization wrapped in a data envelope."""

    data: OrganizationResponse


class OrganizationListResponse(BaseModel):
    """Schema for list of Organizations response."""

    data: list[OrganizationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class OrganizationLookupResponse(BaseModel):
    """Organization found by domain, or null."""

    data: OrganizationResponse | None = None
    suggested_name: str | None = Field(
        None, description="Suggested name for a new organization on this domain"
    )


class SlugAvailabilityResponse(BaseModel):
    """Whether a slug can be used for a new organization."""

    slug: str
    available: bool


class MemberResponse(BaseModel):
    """Schema for an organization member."""

    user_id: UUID
    email: str = ""
    display_name: str | None = None
    role_id: UUID
    role: str = ""
    joined_at: datetime


class MemberListResponse(BaseModel):
    """Schema for list of organization members."""

    data: list[MemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
