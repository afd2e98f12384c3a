from .application import (
    ApiResponse,
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationUpdate,
    PageMeta,
    StatusUpdate,
    TagRequest,
)

__all__ = [
    "ApiResponse",
    "Application",
    "ApplicationCreate",
    "ApplicationStatus",
    "ApplicationUpdate",
    "PageMeta",
    "StatusUpdate",
    "TagRequest",
]
