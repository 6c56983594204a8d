"""
Dependency injection for the API service.
Hands the settings and the refresh scheduler attached to the app to route handlers.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Request

from shared.config import Settings

from scheduler.service import RefreshScheduler


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency: the Settings the app was created with."""
    return request.app.state.settings


def get_scheduler(request: Request) -> Optional[RefreshScheduler]:
    """FastAPI dependency: the running scheduler, or None when the lifespan is disabled."""
    return getattr(request.app.state, "scheduler", None)
