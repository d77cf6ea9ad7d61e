"""HTTP middleware that reports every served request to GA4.

The report is built once the downstream handler has produced its response
and is uploaded as a background task, after the response has been sent.
"""

from collections.abc import Callable

from fastapi import FastAPI, Request
from starlette.background import BackgroundTask

from ga4_report.core.config import Settings
from ga4_report.report.builder import build_report
from ga4_report.report.models import ConnInfo, Report
from ga4_report.report.sender import send_report
from ga4_report.report.sessions import SessionStore

Customize = Callable[[Report, Request], None]


def conn_info(request: Request) -> ConnInfo:
    """Connection handle from the ASGI `client` (host, port) pair."""
    if request.client is None:
        return ConnInfo(remote_host="0.0.0.0")
    return ConnInfo(remote_host=request.client.host, remote_port=request.client.port)


def add_ga4_reporting(
    app: FastAPI,
    sessions: SessionStore,
    settings: Settings,
    customize: Customize | None = None,
) -> None:
    """Register the reporting middleware on `app`.

    `customize(report, request)` runs before upload and may replace the
    primary event, add secondary events or set user and campaign fields.
    The shared HTTP client is taken from `app.state.http_client` if present.
    """

    @app.middleware("http")
    async def ga4_reporting(request: Request, call_next):
        response = await call_next(request)
        if request.url.path in settings.ga4_excluded_paths:
            return response

        report = build_report(request, response, conn_info(request), sessions)
        if customize is not None:
            customize(report, request)

        client = getattr(request.app.state, "http_client", None)
        response.background = BackgroundTask(send_report, report, settings, client)
        return response
