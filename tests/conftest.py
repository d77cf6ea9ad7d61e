"""Shared fixtures for the GA4 reporter tests."""

import httpx
import pytest

from ga4_report.core.config import Settings
from ga4_report.report.models import ConnInfo
from ga4_report.report.sessions import SessionStore


@pytest.fixture
def settings():
    return Settings(ga4_measurement_id="G-TEST123")


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def conn():
    return ConnInfo(remote_host="198.51.100.4", remote_port=50123)


@pytest.fixture
def make_request():
    def _make(url="https://example.com/docs/intro", method="GET", headers=None):
        return httpx.Request(method, url, headers=headers or {})

    return _make


class RecordingTransport(httpx.AsyncBaseTransport):
    """Fake GA4 endpoint that records every request it receives."""

    def __init__(self, status_code: int = 204, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code)


@pytest.fixture
def transport():
    return RecordingTransport()
