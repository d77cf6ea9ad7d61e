"""FastAPI service with GA4 reporting.

Every request except the excluded paths (by default /health) is reported to
GA4 as a page_view, or as the status line for failed requests.
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from ga4_report.collector.middleware import Customize, add_ga4_reporting
from ga4_report.core.config import Settings, get_settings
from ga4_report.core.logger import configure_logging
from ga4_report.report.sessions import SessionStore


def create_app(
    settings: Settings | None = None,
    customize: Customize | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app; `transport` lets tests stand in for the GA4 endpoint."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.app_log_level)
        async with httpx.AsyncClient(timeout=None, transport=transport) as client:
            app.state.http_client = client
            yield

    app = FastAPI(
        title="GA4 Reporter",
        description="Reports served requests to Google Analytics 4.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = SessionStore(settings.ga4_max_sessions)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    add_ga4_reporting(app, app.state.sessions, settings, customize)
    return app
