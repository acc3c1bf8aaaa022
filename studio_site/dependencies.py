"""
FastAPI dependencies that hand per-application objects to the routes.
Everything is read from app.state, populated by create_app().
"""
from datetime import date

from fastapi import Request

from studio_site.config import Settings
from studio_site.storage import DatabaseStorage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> DatabaseStorage:
    return request.app.state.storage


def get_today() -> date:
    """Current date for the public availability window. Overridden in tests."""
    return date.today()
