"""
FastAPI application factory for the Courtside schedule server.

Creates the app with:
- Static file hosting for the front-end and the generated schedule.json
- CORS origin allow-list and the rest of the middleware stack
- Health and status endpoints
- Lifespan management: the refresh scheduler runs on the server's event loop
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from shared.config import Settings, get_settings
from shared.utils.http_client import PollingHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import get_app_settings, get_scheduler
from api.middleware import setup_middleware
from ingest.providers.polling import PollingProvider
from ingest.service import ScheduleBuilder, utc_now
from scheduler.service import RefreshScheduler

logger = get_logger(__name__)

SCHEDULE_ROUTE = "/schedule.json"


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without the upstream feed."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Starts the upstream client and the refresh scheduler on startup and
    shuts both down cleanly.
    """
    settings: Settings = app.state.settings
    setup_logging("api", settings)
    start_metrics_server(settings)

    provider = PollingProvider(PollingHTTPClient.from_settings(settings))
    await provider.start()
    builder = ScheduleBuilder.from_settings(provider.fetch_payload, settings)
    scheduler = RefreshScheduler(builder, settings)
    app.state.scheduler = scheduler
    scheduler.start()

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        static_dir=str(settings.static_dir),
        cors_origins=settings.cors_origins,
    )

    yield

    await scheduler.stop()
    await provider.close()
    app.state.scheduler = None
    logger.info("api_service_stopped")


def _status_payload(scheduler: Optional[RefreshScheduler], settings: Settings) -> dict[str, Any]:
    if scheduler is None:
        return {"status": "idle", "refresh_interval_s": settings.refresh_interval_s}

    last = scheduler.last_result
    if scheduler.last_success_at is None:
        status = "starting" if last is None else "degraded"
    else:
        age_s = (utc_now() - scheduler.last_success_at).total_seconds()
        status = "ok" if age_s <= 3 * scheduler.interval_s else "stale"

    return {
        "status": status,
        "refresh_interval_s": scheduler.interval_s,
        "cycles": scheduler.cycles,
        "last_success_at": scheduler.last_success_at.isoformat() if scheduler.last_success_at else None,
        "last_result": last.to_wire() if last else None,
    }


def create_app(settings: Settings | None = None, *, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing without the feed."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Courtside",
        description="Live tennis order of play, grouped by court",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.scheduler = None

    setup_middleware(app, settings)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    @app.get("/v1/status", tags=["system"])
    async def system_status(
        scheduler: Optional[RefreshScheduler] = Depends(get_scheduler),
        app_settings: Settings = Depends(get_app_settings),
    ) -> dict[str, Any]:
        """Refresh loop health: last cycle outcome and when a snapshot was last written."""
        return _status_payload(scheduler, app_settings)

    @app.get(SCHEDULE_ROUTE, tags=["schedule"], response_model=None)
    async def schedule(app_settings: Settings = Depends(get_app_settings)) -> FileResponse | JSONResponse:
        path = app_settings.schedule_path
        if not path.is_file():
            return JSONResponse(
                status_code=404,
                content={"error": "not_found", "message": "Schedule has not been generated yet"},
            )
        return FileResponse(path, media_type="application/json", headers={"Cache-Control": "no-cache"})

    settings.static_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app
