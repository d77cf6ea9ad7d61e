"""Upload a Report to GA4.

`send_report` never raises: a missing measurement id or client identity, a
non-204 answer, a slow upload or a transport failure are all logged as
warnings prefixed "GA4:". GA4 asks clients not to retry, so nothing is.
"""

import time

import httpx

from ga4_report.core.config import Settings
from ga4_report.core.logger import get_logger
from ga4_report.report.encoder import (
    client_id_for,
    collect_url,
    encode_body,
    encode_query,
)
from ga4_report.report.models import Report

SLOW_UPLOAD_THRESHOLD_MS = 1_000

logger = get_logger(__name__)


def warn(message: str) -> None:
    logger.warning("GA4: %s", message)


async def send_report(
    report: Report,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Send one hit for `report`, updating its session on success."""
    # Nothing to report.
    if not any(report.events):
        return

    if not report.measurement_id:
        report.measurement_id = settings.ga4_measurement_id
    if not report.measurement_id:
        warn(
            "GA4_MEASUREMENT_ID environment variable not set. "
            "Google Analytics reporting disabled."
        )
        return

    if report.client.id is None:
        if report.client.ip is None:
            warn("either `client.id` or `client.ip` must be set.")
            return
        report.client.id = client_id_for(report.client.ip, report.client.headers)

    url = collect_url(encode_query(report))
    # Header values arrive latin-1 decoded; send them back as the same bytes.
    headers = {
        name: value.encode("latin-1", errors="replace")
        for name, value in report.client.headers.items()
    }
    body = encode_body(report)

    logger.debug("GA4 upload %s\n%s", url, body)

    try:
        start = time.perf_counter()
        if client is None:
            async with httpx.AsyncClient(timeout=None) as owned_client:
                response = await owned_client.post(url, headers=headers, content=body)
        else:
            response = await client.post(url, headers=headers, content=body)
        duration_ms = (time.perf_counter() - start) * 1000
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
        warn(f"Upload failed: {exc!r}")
        return

    if report.session is not None and response.is_success:
        sent_events = [event for event in report.events if event]
        if report.event is not None:
            report.session.start = None
        report.session.hit_count += len(sent_events) or 1

    if response.status_code != 204 or duration_ms >= SLOW_UPLOAD_THRESHOLD_MS:
        warn(
            f"{len(report.events)} events uploaded in {duration_ms:.0f}ms. "
            f"Response: {response.status_code} {response.reason_phrase}"
        )
