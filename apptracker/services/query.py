"""Search, filtering and pagination over the application collection.

Everything here works on an already-loaded list; the store is responsible for
reading it under the shared lock.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from apptracker.config import settings
from apptracker.models.application import Application, ApplicationStatus, PageMeta

# Stat names used by the dashboard counters -> status value (None counts everything)
STAT_STATUSES: dict[str, str | None] = {
    "total": None,
    "applied": ApplicationStatus.APPLIED.value,
    "in-progress": ApplicationStatus.IN_PROGRESS.value,
    "accepted": ApplicationStatus.ACCEPTED.value,
    "rejected": ApplicationStatus.REJECTED.value,
}


class Page(BaseModel):
    items: list[Application]
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    def meta(self) -> PageMeta:
        return PageMeta(
            page=self.page,
            page_size=self.page_size,
            total_count=self.total_count,
            total_pages=self.total_pages,
            has_next_page=self.has_next_page,
            has_prev_page=self.has_prev_page,
        )


def _has_all_tags(app: Application, wanted: Sequence[str]) -> bool:
    have = {t.lower() for t in app.tags}
    return all(tag.lower() in have for tag in wanted)


def _matches_text(app: Application, needle: str) -> bool:
    return (
        needle in app.company.lower()
        or needle in app.position.lower()
        or needle in app.description.lower()
    )


def filter_applications(
    apps: Iterable[Application],
    query: str | None = None,
    tags: Sequence[str] | None = None,
) -> list[Application]:
    """Keep applications carrying every tag (case-insensitive) and matching the text query.

    The text query is a case-insensitive substring test against company,
    position and description; any one field matching is enough. Input order
    is preserved.
    """
    wanted = list(tags or [])
    needle = (query or "").lower()

    results = []
    for app in apps:
        if wanted and not _has_all_tags(app, wanted):
            continue
        if needle and not _matches_text(app, needle):
            continue
        results.append(app)
    return results


def filter_by_status(apps: Iterable[Application], status: str | None) -> list[Application]:
    if not status:
        return list(apps)
    return [app for app in apps if app.status == status]


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag parameter, dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def parse_page(raw: str | int | None) -> int:
    try:
        page = int(raw) if raw is not None else 1
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def parse_page_size(
    raw: str | int | None,
    allowed: Sequence[int] | None = None,
    default: int | None = None,
) -> int:
    """Only the configured sizes are honoured; anything else falls back to the default."""
    allowed = allowed or settings.allowed_page_sizes
    default = default or settings.default_page_size
    try:
        size = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default
    return size if size in allowed else default


def paginate(items: Sequence[Application], page: int, page_size: int) -> Page:
    total_count = len(items)
    total_pages = math.ceil(total_count / page_size) if page_size else 0
    start = (page - 1) * page_size
    end = min(page * page_size, total_count)
    sliced = list(items[start:end]) if start < total_count else []
    return Page(
        items=sliced,
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def stat_count(apps: Sequence[Application], stat: str) -> int:
    if stat not in STAT_STATUSES:
        raise ValueError(f"Unknown stat type: {stat}")
    status = STAT_STATUSES[stat]
    if status is None:
        return len(apps)
    return sum(1 for app in apps if app.status == status)
