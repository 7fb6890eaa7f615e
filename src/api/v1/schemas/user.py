"""Pydantic schemas for User API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    """Schema for updating the current user's profile (all fields optional)."""

    display_name: str | None = Field(None, min_length=1, max_length=100)
    job_title: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    """Schema for the current user's profile."""

    id: UUID
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    job_title: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime
