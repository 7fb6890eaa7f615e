"""Organization, role and membership domain entities."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

ADMIN_ROLE_NAME = "Admin"
MEMBER_ROLE_NAME = "Member"


class Permissions:
    """Permission names a role can grant."""

    MANAGE_USERS = "manage_users"
    MANAGE_ORGANIZATION = "manage_organization"
    MANAGE_ROLES = "manage_roles"
    INVITE_USERS = "invite_users"
    VIEW_ORGANIZATION = "view_organization"


ADMIN_PERMISSIONS = [
    Permissions.MANAGE_USERS,
    Permissions.MANAGE_ORGANIZATION,
    Permissions.MANAGE_ROLES,
    Permissions.INVITE_USERS,
    Permissions.VIEW_ORGANIZATION,
]

MEMBER_PERMISSIONS = [
    Permissions.VIEW_ORGANIZATION,
]

DEFAULT_ROLE_PERMISSIONS = {
    ADMIN_ROLE_NAME: ADMIN_PERMISSIONS,
    MEMBER_ROLE_NAME: MEMBER_PERMISSIONS,
}


@dataclass
class Organization:
    """Domain entity for an Organization (tenant)."""

    name: str
    slug: str
    id: UUID = field(default_factory=uuid4)
    domain: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class Role:
    """A named permission set scoped to one organization."""

    organization_id: UUID
    name: str
    permissions: list[str] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


@dataclass
class Membership:
    """Domain entity for a user's membership in an organization."""

    user_id: UUID
    organization_id: UUID
    role_id: UUID
    joined_at: datetime = field(default_factory=datetime.utcnow)


_SLUG_RE = re.compile(r"^[a-z0-9\-]{2,50}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def generate_slug(text: str) -> str:
    """Generate a URL-friendly slug from an organization name."""
    slug = text.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = slug.replace("&", "-and-")
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    slug = slug.replace("_", "-")
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")[:50].rstrip("-")


def is_valid_slug(slug: str) -> bool:
    """Slugs are 2-50 characters of lowercase letters, digits and hyphens."""
    return bool(_SLUG_RE.match(slug))


def extract_domain(email: str) -> str | None:
    """Return the domain part of an email address, or None if malformed."""
    if not email:
        return None
    parts = email.split("@")
    if len(parts) != 2 or not parts[1]:
        return None
    return parts[1].lower()


def suggest_organization_name(domain: str) -> str:
    """Suggest a display name from a domain, e.g. ``acme-corp.io`` -> ``Acme Corp``."""
    if not domain:
        return ""
    name = domain.split(".")[0]
    return " ".join(word.capitalize() for word in re.split(r"[-_]", name) if word)


def is_valid_email(email: str) -> bool:
    """Basic shape check for an email address."""
    return bool(email) and bool(_EMAIL_RE.match(email))
