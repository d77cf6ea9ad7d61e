"""Session bookkeeping keyed by connection.

A session is created the first time a connection reports and is reused for
every later hit on that connection until the connection is closed (or, in
servers without a close hook, until it is evicted as least recently used).
"""

import secrets
from collections import OrderedDict
from datetime import datetime, timezone

from ga4_report.report.models import ConnInfo, Session

START_OF_2020 = datetime(2020, 1, 1, tzinfo=timezone.utc)
MINUTE_MS = 60 * 1000

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def session_number(now: datetime | None = None) -> int:
    """Minutes elapsed since 2020-01-01T00:00Z.

    GA4 ignores sessions without a session count, and a true visit tally
    cannot be known server-side, so this elapsed-time value stands in for it.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed_ms = (now - START_OF_2020).total_seconds() * 1000
    return int(elapsed_ms // MINUTE_MS)


def new_session(now: datetime | None = None) -> Session:
    session_id = _to_base36(secrets.randbelow(2**52)).zfill(10)
    return Session(id=session_id, number=session_number(now))


class SessionStore:
    """Sessions cached per connection, bounded to `max_sessions` entries."""

    def __init__(self, max_sessions: int = 10_000):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[ConnInfo, Session] = OrderedDict()

    def get(self, conn: ConnInfo) -> Session:
        session = self._sessions.get(conn)
        if session is None:
            session = new_session()
            self._sessions[conn] = session
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)
        else:
            self._sessions.move_to_end(conn)
        return session

    def close(self, conn: ConnInfo) -> None:
        """Forget the session of a connection that has gone away."""
        self._sessions.pop(conn, None)

    def __contains__(self, conn: ConnInfo) -> bool:
        return conn in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
