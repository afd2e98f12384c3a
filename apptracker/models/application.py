from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    IN_PROGRESS = "in_progress"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in {status.value for status in cls}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Timestamp plus a random suffix, e.g. ``app_1718000000000000000_9f2c...``."""
    return f"app_{time.time_ns()}_{uuid.uuid4().hex[:16]}"


class Application(BaseModel):
    """One tracked job application, as stored in the JSON document."""

    id: str = Field(default_factory=generate_id)
    company: str
    position: str
    description: str = ""
    url: str = ""
    # Kept as a plain string: membership in ApplicationStatus is checked by callers.
    status: str = ApplicationStatus.APPLIED.value
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    @classmethod
    def new(
        cls,
        company: str,
        position: str,
        description: str = "",
        url: str = "",
        tags: list[str] | None = None,
    ) -> Application:
        now = utcnow()
        return cls(
            company=company,
            position=position,
            description=description,
            url=url,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
        )

    def touch(self) -> None:
        self.updated_at = utcnow()

    def update_status(self, status: str) -> None:
        self.status = status
        self.touch()

    def add_tag(self, tag: str) -> None:
        if tag in self.tags:
            return
        self.tags.append(tag)
        self.touch()

    def remove_tag(self, tag: str) -> None:
        if tag not in self.tags:
            return
        self.tags.remove(tag)
        self.touch()

    def apply_update(
        self,
        company: str = "",
        position: str = "",
        description: str = "",
        url: str = "",
        status: str = "",
        tags: list[str] | None = None,
    ) -> None:
        """Apply an edit form / PUT body.

        Blank company, position and status leave the current value alone;
        description and url are always overwritten so they can be cleared.
        """
        if company:
            self.company = company
        if position:
            self.position = position
        self.description = description
        self.url = url
        if status:
            self.status = status
        if tags is not None:
            self.tags = list(tags)
        self.touch()


class ApplicationCreate(BaseModel):
    company: str = ""
    position: str = ""
    description: str = ""
    url: str = ""
    status: str = ""
    tags: list[str] | None = None


class ApplicationUpdate(ApplicationCreate):
    pass


class StatusUpdate(BaseModel):
    status: str = ""


class TagRequest(BaseModel):
    tag: str = ""


class PageMeta(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ApiResponse(BaseModel):
    """Envelope shared by every /api endpoint except the health check."""

    success: bool = True
    message: str | None = None
    data: Application | list[Application] | None = None
    meta: PageMeta | None = None
