"""CLI entrypoint: build the GA4 hit for a synthetic request and print it.

Useful for checking what a given URL and set of headers turns into on the
wire. With --send the hit is actually uploaded.

Usage:
    python -m ga4_report.preview https://example.com/docs/intro
    python -m ga4_report.preview https://example.com/missing --status 404 --ip 203.0.113.7
    python -m ga4_report.preview https://example.com/ --event signup --send
"""

import argparse
import asyncio

import httpx

from ga4_report.core.config import Settings, get_settings
from ga4_report.core.logger import configure_logging
from ga4_report.report.builder import build_report
from ga4_report.report.encoder import client_id_for, collect_url, encode_body, encode_query
from ga4_report.report.models import ConnInfo, Event, Report
from ga4_report.report.sender import send_report
from ga4_report.report.sessions import SessionStore


def preview_report(opts: argparse.Namespace, settings: Settings) -> Report:
    """Build the report described by the command-line options."""
    headers = {}
    if opts.user_agent:
        headers["user-agent"] = opts.user_agent
    if opts.referer:
        headers["referer"] = opts.referer
    if opts.accept_language:
        headers["accept-language"] = opts.accept_language

    request = httpx.Request(opts.method, opts.url, headers=headers)
    response = httpx.Response(opts.status)
    conn = ConnInfo(remote_host=opts.ip)

    report = build_report(
        request,
        response,
        conn,
        SessionStore(),
        measurement_id=opts.measurement_id or settings.ga4_measurement_id,
    )
    if opts.no_page_view:
        report.event = None
    for name in opts.event:
        report.secondary_events.append(Event(name=name))
    return report


def format_preview(report: Report) -> str:
    """Render the collect URL and body as they would be sent."""
    if report.client.id is None and report.client.ip is not None:
        report.client.id = client_id_for(report.client.ip, report.client.headers)
    lines = [f"POST {collect_url(encode_query(report))}"]
    for name, value in report.client.headers.items():
        lines.append(f"{name}: {value}")
    body = encode_body(report)
    if body:
        lines.append("")
        lines.append(body)
    return "\n".join(lines)


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Preview or send a GA4 hit")
    parser.add_argument("url", help="Request URL being reported")
    parser.add_argument("--method", default="GET", help="Request method")
    parser.add_argument("--status", type=int, default=200, help="Response status code")
    parser.add_argument("--ip", default="127.0.0.1", help="Client remote address")
    parser.add_argument("--user-agent", default=None, help="User-Agent header")
    parser.add_argument("--referer", default=None, help="Referer header")
    parser.add_argument("--accept-language", default=None, help="Accept-Language header")
    parser.add_argument("--event", action="append", default=[], help="Secondary event name (repeatable)")
    parser.add_argument("--no-page-view", action="store_true", help="Suppress the primary page_view")
    parser.add_argument("--measurement-id", default=None, help="GA4 measurement id (G-XXXX)")
    parser.add_argument("--send", action="store_true", help="Upload the hit instead of only printing it")
    opts = parser.parse_args(args)

    settings = get_settings()
    report = preview_report(opts, settings)
    print(format_preview(report))

    if opts.send:
        configure_logging(settings.app_log_level)
        asyncio.run(send_report(report, settings))


if __name__ == "__main__":
    main()
