"""Encode a Report into GA4 `/g/collect` query parameters and body.

GA4 parses the query string positionally in practice, so parameters are
emitted in a fixed order. Dicts preserve insertion order, which is the order
they end up in on the wire.
"""

import hashlib
import re
from urllib.parse import urlencode

from ga4_report.report.models import Event, Primitive, Report

GA4_ENDPOINT_URL = "https://www.google-analytics.com/g/collect"
PROTOCOL_VERSION = 2


def to_snake_case(name: str) -> str:
    """Convert camelCase, PascalCase, kebab-case or spaced names to snake_case."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    name = re.sub(r"[^A-Za-z\d]+", "_", name)
    return name.strip("_").lower()


def _is_numeric(value: Primitive) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_value(value: Primitive) -> str:
    """String form of a value as GA4 expects it (`True` -> "1", `42.0` -> "42")."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def add_param(params: dict[str, str], name: str, value: Primitive) -> None:
    """Set `name` unless value is None; booleans become "1"/"0"."""
    if value is not None:
        params[name] = format_value(value)


def add_custom_param(
    params: dict[str, str], prefix: str, name: str, value: Primitive
) -> None:
    """Set a custom event param (`ep`) or user property (`up`).

    Numeric values go under `<prefix>n.<name>`, everything else under
    `<prefix>.<name>`.
    """
    if value is None:
        return
    name = to_snake_case(name)
    if _is_numeric(value):
        params[f"{prefix}n.{name}"] = format_value(value)
    else:
        params[f"{prefix}.{name}"] = format_value(value)


def _add_event_params(params: dict[str, str], event: Event) -> None:
    add_custom_param(params, "ep", "event_category", event.category)
    add_custom_param(params, "ep", "event_label", event.label)
    for name, value in event.params.items():
        add_custom_param(params, "ep", name, value)


def client_id_for(ip: str, headers: dict[str, str]) -> str:
    """Pseudonymous client id: SHA-1 of the IP and browser identification headers."""
    material = ",".join(
        [ip, headers.get("user-agent") or "", headers.get("sec-ch-ua") or ""]
    )
    return hashlib.sha1(material.encode("utf-8")).hexdigest()


def encode_query(report: Report) -> dict[str, str]:
    params: dict[str, str] = {}

    add_param(params, "v", PROTOCOL_VERSION)
    add_param(params, "tid", report.measurement_id)

    add_param(params, "cid", report.client.id)
    add_param(params, "ul", report.client.language)
    add_param(params, "_uip", report.client.ip)

    add_param(params, "uid", report.user.id)

    campaign = report.campaign
    if campaign is not None:
        add_param(params, "cs", campaign.source)
        add_param(params, "cm", campaign.medium)
        add_param(params, "ci", campaign.id)
        add_param(params, "cn", campaign.name)
        add_param(params, "cc", campaign.content)
        add_param(params, "ck", campaign.term)

    session = report.session
    if session is not None:
        add_param(params, "sid", session.id)
        add_param(params, "sct", session.number)
        add_param(params, "seg", session.engaged)
        add_param(params, "_s", session.hit_count)

    page = report.page
    add_param(params, "dl", page.location)
    add_param(params, "dr", page.referrer)
    add_param(params, "dt", page.title)
    add_param(params, "ir", page.ignore_referrer)
    add_param(params, "tt", page.traffic_type)

    event = report.event
    if event is not None:
        _add_event_params(params, event)
        add_param(params, "en", event.name)

        add_param(params, "_fv", page.first_visit)
        add_param(params, "_nsi", page.new_to_site)
        add_param(params, "_ss", session.start if session is not None else None)

    for name, value in report.user.properties.items():
        add_custom_param(params, "up", name, value)

    return params


def encode_event_line(event: Event) -> dict[str, str]:
    # In the body the event name goes before its parameters.
    params: dict[str, str] = {}
    add_param(params, "en", event.name)
    _add_event_params(params, event)
    return params


def encode_body(report: Report) -> str:
    return "\n".join(
        urlencode(encode_event_line(event)) for event in report.secondary_events
    )


def collect_url(query: dict[str, str]) -> str:
    return f"{GA4_ENDPOINT_URL}?{urlencode(query)}"
