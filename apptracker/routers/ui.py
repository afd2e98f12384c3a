"""Server-rendered pages and htmx fragments."""
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.templating import Jinja2Templates

from apptracker.config import Settings
from apptracker.deps import get_settings, get_store, get_templates
from apptracker.models.application import ApplicationStatus
from apptracker.services.query import (
    filter_by_status,
    paginate,
    parse_page,
    parse_page_size,
    parse_tags,
    stat_count,
)
from apptracker.store import ApplicationNotFound, ApplicationStore, StoreError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ui"], default_response_class=HTMLResponse)


def _common_context(request: Request) -> dict:
    return {"current_year": datetime.now().year}


def status_label(value: str) -> str:
    return value.replace("_", " ").title()


def build_templates(config: Settings) -> Jinja2Templates:
    """Template environment for one app instance, rooted at ``config.templates_dir``."""
    templates = Jinja2Templates(
        directory=str(config.templates_dir),
        context_processors=[_common_context],
    )
    templates.env.filters["status_label"] = status_label
    templates.env.globals["statuses"] = [s.value for s in ApplicationStatus]
    templates.env.globals["page_sizes"] = config.allowed_page_sizes
    return templates


def _page_size(raw: str | None, config: Settings) -> int:
    return parse_page_size(raw, config.allowed_page_sizes, config.default_page_size)


def _load_or_error(store: ApplicationStore, app_id: str):
    """Return (application, None) or (None, error response)."""
    try:
        return store.get_by_id(app_id), None
    except ApplicationNotFound:
        return None, PlainTextResponse("Application not found", status_code=404)
    except StoreError as e:
        logger.error("Failed to retrieve application %s: %s", app_id, e)
        return None, PlainTextResponse("Failed to retrieve application", status_code=500)


@router.get("/")
def home(request: Request, templates: Jinja2Templates = Depends(get_templates)) -> Response:
    return templates.TemplateResponse(request, "pages/home.html", {"title": "Home"})


@router.get("/applications")
def applications_list(
    request: Request,
    q: str = Query(""),
    tags: str = Query(""),
    status: str = Query(""),
    page_size: str | None = Query(None, alias="pageSize"),
    config: Settings = Depends(get_settings),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    return templates.TemplateResponse(
        request,
        "pages/applications/list.html",
        {
            "title": "Applications",
            "query": q,
            "tags": tags,
            "status": status,
            "page_size": _page_size(page_size, config),
        },
    )


@router.get("/applications/new")
def new_application(request: Request, templates: Jinja2Templates = Depends(get_templates)) -> Response:
    return templates.TemplateResponse(
        request,
        "pages/applications/form.html",
        {"title": "Add New Application", "application": None},
    )


@router.get("/applications/{app_id}")
def application_detail(
    request: Request,
    app_id: str,
    store: ApplicationStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    application, error = _load_or_error(store, app_id)
    if error:
        return error
    return templates.TemplateResponse(
        request,
        "pages/applications/detail.html",
        {
            "title": f"{application.company} - {application.position}",
            "application": application,
        },
    )


@router.get("/applications/{app_id}/edit")
def application_edit(
    request: Request,
    app_id: str,
    store: ApplicationStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    application, error = _load_or_error(store, app_id)
    if error:
        return error
    return templates.TemplateResponse(
        request,
        "pages/applications/form.html",
        {"title": f"Edit Application - {application.company}", "application": application},
    )


@router.get("/htmx/applications")
@router.get("/htmx/applications/search")
def htmx_applications(
    request: Request,
    q: str = Query(""),
    tags: str = Query(""),
    status: str = Query(""),
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    store: ApplicationStore = Depends(get_store),
    config: Settings = Depends(get_settings),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    """Table rows plus pager for the list page, swapped in by htmx."""
    try:
        found = store.search(q, parse_tags(tags))
    except StoreError as e:
        logger.error("Failed to search applications: %s", e)
        return PlainTextResponse("Failed to search applications", status_code=500)

    result = paginate(filter_by_status(found, status), parse_page(page), _page_size(page_size, config))
    response = templates.TemplateResponse(
        request,
        "partials/application_rows.html",
        {"result": result, "query": q, "tags": tags, "status": status},
    )
    response.headers["HX-Has-More"] = "true" if result.has_next_page else "false"
    return response


@router.get("/htmx/applications/count", response_class=PlainTextResponse)
def htmx_applications_count(store: ApplicationStore = Depends(get_store)) -> Response:
    try:
        apps = store.get_all()
    except StoreError as e:
        logger.error("Failed to retrieve applications: %s", e)
        return PlainTextResponse("Failed to retrieve applications", status_code=500)
    return PlainTextResponse(str(len(apps)))


@router.get("/htmx/stats/{stat}", response_class=PlainTextResponse)
def htmx_stats(stat: str, store: ApplicationStore = Depends(get_store)) -> Response:
    try:
        apps = store.get_all()
    except StoreError as e:
        logger.error("Failed to retrieve applications: %s", e)
        return PlainTextResponse("Failed to retrieve applications", status_code=500)
    try:
        count = stat_count(apps, stat)
    except ValueError:
        return PlainTextResponse("Invalid stat type", status_code=400)
    return PlainTextResponse(str(count))
