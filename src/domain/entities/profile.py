"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from domain.entities.organization import extract_domain


@dataclass
class Profile:
    """A user as known locally, mirrored from the identity provider."""

    id: UUID
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    job_title: str | None = None
    bio: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def email_domain(self) -> str | None:
        return extract_domain(self.email)
