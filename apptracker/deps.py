"""FastAPI dependencies."""
from __future__ import annotations

from fastapi import Request
from fastapi.templating import Jinja2Templates

from apptracker.config import Settings
from apptracker.store import ApplicationStore


def get_store(request: Request) -> ApplicationStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates


def is_htmx(request: Request) -> bool:
    return request.headers.get("HX-Request") == "true"
