"""Report models for GA4 Measurement Protocol hits.

A Report aggregates everything one upload says about a request: who made it
(client, user), which session it belongs to, what was served (page) and what
happened (events). Every report has a primary event slot, which may be None
to suppress the default page_view, plus any number of secondary events.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Primitive = bool | int | float | str | None

TrafficType = Literal["direct", "organic", "referral", "internal", "custom"]


class ConnInfo(BaseModel):
    """Connection handle; identifies the transport a request arrived on."""

    model_config = ConfigDict(frozen=True)

    remote_host: str
    remote_port: int = 0


class Client(BaseModel):
    # Either `id` or `ip` must be set by the time the report is sent.
    id: str | None = None
    ip: str | None = None
    language: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("headers")
    @classmethod
    def header_names_lowercase(cls, v: dict[str, str]) -> dict[str, str]:
        return {name.lower(): value for name, value in v.items()}


class User(BaseModel):
    id: str | None = None
    properties: dict[str, Primitive] = Field(default_factory=dict)


class Session(BaseModel):
    """Per-connection session state, mutated after every successful upload."""

    id: str
    number: int
    engaged: bool = True
    start: bool | None = True
    hit_count: int = 0


class Page(BaseModel):
    location: str
    title: str
    referrer: str | None = None
    ignore_referrer: bool | None = None
    traffic_type: TrafficType | None = None
    first_visit: bool | None = None
    new_to_site: bool | None = None


class Campaign(BaseModel):
    """Attribution fields; only ever set by the caller."""

    source: str | None = None
    medium: str | None = None
    id: str | None = None
    name: str | None = None
    content: str | None = None
    term: str | None = None


class Event(BaseModel):
    name: str
    category: str | None = None
    label: str | None = None
    params: dict[str, Primitive] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("event name must not be empty")
        return v.strip()


def _page_view() -> Event:
    return Event(name="page_view")


class Report(BaseModel):
    measurement_id: str | None = None
    client: Client
    user: User = Field(default_factory=User)
    session: Session | None = None
    campaign: Campaign | None = None
    page: Page
    event: Event | None = Field(default_factory=_page_view)
    secondary_events: list[Event] = Field(default_factory=list)

    @property
    def events(self) -> list[Event | None]:
        """Primary event slot followed by the secondary events."""
        return [self.event, *self.secondary_events]
