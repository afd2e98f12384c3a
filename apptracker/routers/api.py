"""JSON API for applications.

Create/update endpoints also accept htmx form posts (``HX-Request: true``) and
answer those with ``HX-Redirect`` / ``HX-Refresh`` headers instead of JSON.
"""
from __future__ import annotations

import json
import logging
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from apptracker.config import Settings
from apptracker.deps import get_settings, get_store, is_htmx
from apptracker.models.application import (
    ApiResponse,
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationUpdate,
    StatusUpdate,
    TagRequest,
)
from apptracker.services.query import paginate, parse_page, parse_page_size, parse_tags
from apptracker.store import ApplicationStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["applications"])

PayloadT = TypeVar("PayloadT", bound=BaseModel)

_FORM_FIELDS = ("company", "position", "description", "url", "status")


async def _read_payload(request: Request, model: type[PayloadT]) -> PayloadT:
    """Parse either an htmx form submission or a JSON body into ``model``."""
    if is_htmx(request):
        form = await request.form()
        data: dict = {k: str(form[k]) for k in _FORM_FIELDS if k in form and k in model.model_fields}
        if "tag" in model.model_fields:
            data["tag"] = str(form.get("tag", ""))
        raw_tags = form.get("tags")
        if raw_tags and "tags" in model.model_fields:
            data["tags"] = parse_tags(str(raw_tags))
        return model.model_validate(data)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid request payload: {e}")
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid request payload: {e.errors()[0]['msg']}")


def _check_status(status: str) -> None:
    if not ApplicationStatus.is_valid(status):
        raise HTTPException(status_code=400, detail="Invalid status value")


@router.get("/health", tags=["health"])
async def health() -> dict:
    return {"status": "ok"}


@router.get("/applications", response_model=ApiResponse, response_model_exclude_none=True)
def list_applications(
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    store: ApplicationStore = Depends(get_store),
    config: Settings = Depends(get_settings),
) -> ApiResponse:
    size = parse_page_size(page_size, config.allowed_page_sizes, config.default_page_size)
    result = paginate(store.get_all(), parse_page(page), size)
    return ApiResponse(data=result.items, meta=result.meta())


@router.get("/applications/search", response_model=ApiResponse, response_model_exclude_none=True)
def search_applications(
    q: str = Query(""),
    tags: str = Query(""),
    store: ApplicationStore = Depends(get_store),
) -> ApiResponse:
    return ApiResponse(data=store.search(q, parse_tags(tags)))


@router.get("/applications/{app_id}", response_model=ApiResponse, response_model_exclude_none=True)
def get_application(app_id: str, store: ApplicationStore = Depends(get_store)) -> ApiResponse:
    return ApiResponse(data=store.get_by_id(app_id))


@router.post(
    "/applications",
    status_code=201,
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def create_application(
    request: Request, store: ApplicationStore = Depends(get_store)
) -> ApiResponse | Response:
    payload = await _read_payload(request, ApplicationCreate)
    if not payload.company or not payload.position:
        raise HTTPException(status_code=400, detail="Company and position are required fields")
    if payload.status:
        _check_status(payload.status)

    application = Application.new(
        payload.company,
        payload.position,
        payload.description,
        payload.url,
        payload.tags,
    )
    if payload.status:
        application.update_status(payload.status)

    logger.info("Creating application: %s - %s", application.company, application.id)
    await run_in_threadpool(store.save, application)

    if is_htmx(request):
        return Response(status_code=200, headers={"HX-Redirect": "/applications"})
    return ApiResponse(message="Application created successfully", data=application)


@router.put("/applications/{app_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_application(
    app_id: str, request: Request, store: ApplicationStore = Depends(get_store)
) -> ApiResponse | Response:
    payload = await _read_payload(request, ApplicationUpdate)
    if payload.status:
        _check_status(payload.status)

    def edit(application: Application) -> None:
        application.apply_update(
            company=payload.company,
            position=payload.position,
            description=payload.description,
            url=payload.url,
            status=payload.status,
            tags=payload.tags,
        )

    application = await run_in_threadpool(store.update, app_id, edit)
    logger.info("Updated application %s", app_id)

    if is_htmx(request):
        return Response(status_code=200, headers={"HX-Redirect": f"/applications/{app_id}"})
    return ApiResponse(message="Application updated successfully", data=application)


@router.put(
    "/applications/{app_id}/status",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def update_application_status(
    app_id: str, request: Request, store: ApplicationStore = Depends(get_store)
) -> ApiResponse | Response:
    payload = await _read_payload(request, StatusUpdate)
    _check_status(payload.status)

    application = await run_in_threadpool(
        store.update, app_id, lambda a: a.update_status(payload.status)
    )
    logger.info("Application %s status -> %s", app_id, payload.status)

    if is_htmx(request):
        return Response(status_code=200, headers={"HX-Refresh": "true"})
    return ApiResponse(message="Application status updated successfully", data=application)


@router.post(
    "/applications/{app_id}/tags",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def add_application_tag(
    app_id: str, request: Request, store: ApplicationStore = Depends(get_store)
) -> ApiResponse | Response:
    payload = await _read_payload(request, TagRequest)
    tag = payload.tag.strip()
    if not tag:
        raise HTTPException(status_code=400, detail="Tag is required")

    application = await run_in_threadpool(store.update, app_id, lambda a: a.add_tag(tag))

    if is_htmx(request):
        return Response(status_code=200, headers={"HX-Refresh": "true"})
    return ApiResponse(message="Tag added", data=application)


@router.delete(
    "/applications/{app_id}/tags/{tag}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
def remove_application_tag(
    app_id: str, tag: str, store: ApplicationStore = Depends(get_store)
) -> ApiResponse:
    application = store.update(app_id, lambda a: a.remove_tag(tag))
    return ApiResponse(message="Tag removed", data=application)


@router.delete(
    "/applications/{app_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
def delete_application(app_id: str, store: ApplicationStore = Depends(get_store)) -> ApiResponse:
    store.delete(app_id)
    logger.info("Deleted application %s", app_id)
    return ApiResponse(message="Application deleted successfully")
