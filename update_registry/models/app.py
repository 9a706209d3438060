"""App data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from update_registry.timeutil import utcnow

SLUG_PATTERN = r"^[a-z][a-z0-9-]*[a-z0-9]$"


@dataclass
class App:
    """A desktop application that receives updates.

    Attributes:
        id: Unique app ID.
        slug: URL slug used by the update endpoint.
        name: Display name.
        description: Optional description.
        public_key: Updater public key; when set, only signed artifacts are served.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    slug: str
    name: str
    description: Optional[str] = None
    public_key: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def requires_signature(self) -> bool:
        return bool(self.public_key)


# Pydantic Models for API


class AppCreate(BaseModel):
    """Request model for creating an app.

    Attributes:
        slug: Unique URL slug.
        name: Display name.
        description: Optional description.
        public_key: Optional updater public key.
    """

    slug: str = Field(..., min_length=2, max_length=50, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    public_key: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def no_consecutive_hyphens(cls, v: str) -> str:
        if "--" in v:
            raise ValueError("Slug cannot contain consecutive hyphens")
        return v


class AppUpdate(BaseModel):
    """Request model for updating an app."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    public_key: Optional[str] = None


class AppResponse(BaseModel):
    """App representation returned by the admin API."""

    id: str
    slug: str
    name: str
    description: Optional[str]
    public_key: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_app(cls, app: App) -> "AppResponse":
        return cls(
            id=app.id,
            slug=app.slug,
            name=app.name,
            description=app.description,
            public_key=app.public_key,
            created_at=app.created_at,
            updated_at=app.updated_at,
        )
