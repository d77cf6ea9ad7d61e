"""Build a GA4 report from a finished request/response exchange.

The request needs `method`, `url` and case-insensitive `headers`; the
response needs `status_code` and, optionally, `reason_phrase`. Starlette and
httpx objects both fit.
"""

import re
from http import HTTPStatus
from urllib.parse import unquote, urlsplit

from ga4_report.report.models import Client, ConnInfo, Page, Report, User
from ga4_report.report.sessions import SessionStore

TOP_LEVEL_TITLE = "(top level)"
DEFAULT_PORTS = {"http": 80, "https": 443}


def build_report(
    request,
    response,
    conn: ConnInfo,
    sessions: SessionStore,
    measurement_id: str | None = None,
) -> Report:
    """Populate a Report with defaults derived from the exchange.

    The primary event is a page_view; callers may replace it, set it to
    None, or append secondary events before sending.
    """
    page = Page(
        location=str(request.url),
        title=get_page_title(request, response),
        referrer=get_page_referrer(request),
    )
    if page.referrer is not None:
        page.traffic_type = "referral"

    return Report(
        measurement_id=measurement_id,
        client=Client(
            ip=get_client_ip(request, conn),
            language=get_client_language(request),
            headers=get_client_headers(request),
        ),
        user=User(),
        session=sessions.get(conn),
        page=page,
    )


def get_client_ip(request, conn: ConnInfo) -> str:
    x_forwarded_for = request.headers.get("x-forwarded-for")
    if x_forwarded_for:
        return re.split(r"\s*,\s*", x_forwarded_for.strip())[0]
    return conn.remote_host


def get_client_language(request) -> str | None:
    accept_language = request.headers.get("accept-language")
    if accept_language is None:
        return None
    codes = [c for c in re.split(r"[^a-z-]+", accept_language, flags=re.I) if c]
    if not codes:
        return None
    return codes[0].lower()


def get_client_headers(request) -> dict[str, str]:
    """Keep only the headers GA4 uses to identify the browser."""
    headers = {}
    for name, value in request.headers.items():
        name = name.lower()
        if name == "user-agent" or name == "sec-ch-ua" or name.startswith("sec-ch-ua-"):
            headers[name] = value
    return headers


def _site(url: str) -> tuple[str, int | None] | None:
    """Lower-cased host and non-default port of `url`, or None if unparsable."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None
    if port == DEFAULT_PORTS.get(parts.scheme.lower()):
        port = None
    return parts.hostname, port


def get_page_referrer(request) -> str | None:
    """Return the referer header if it points at another site."""
    referrer = request.headers.get("referer")
    if referrer is None:
        return None
    referrer_site = _site(referrer)
    if referrer_site is None:
        return None
    if referrer_site == _site(str(request.url)):
        return None
    return referrer


def get_page_title(request, response) -> str:
    if request.method in ("GET", "HEAD") and is_success(response):
        return title_from_path(urlsplit(str(request.url)).path)
    return format_status(response).lower()


def title_from_path(path: str) -> str:
    """Turn a URL path like `/std@0.120.0/http/server.ts` into `std / http / server`."""
    path = re.sub(r"\.[^/]*$", "", path)  # file extension
    segments = []
    for segment in re.split(r"/+", path):
        segment = unquote(segment)
        segment = re.sub(r"[\s_]+", " ", segment)
        segment = re.sub(r"@v?[\d.\s]+$", "", segment)  # version suffix
        segment = segment.strip()
        if segment:
            segments.append(segment)
    return " / ".join(segments) or TOP_LEVEL_TITLE


def format_status(response) -> str:
    status = response.status_code
    status_text = getattr(response, "reason_phrase", None)
    if not status_text:
        try:
            status_text = HTTPStatus(status).phrase
        except ValueError:
            status_text = "Invalid Status"
    return f"{status} {status_text}"


def is_success(response) -> bool:
    return 200 <= response.status_code <= 299


def is_redirect(response) -> bool:
    return 300 <= response.status_code <= 399


def is_server_error(response) -> bool:
    return 500 <= response.status_code <= 599
