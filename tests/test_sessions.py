"""Tests for per-connection session bookkeeping."""

from datetime import datetime, timedelta, timezone

import pytest

from ga4_report.report.models import ConnInfo
from ga4_report.report.sessions import SessionStore, new_session, session_number


class TestSessionNumber:
    def test_epoch_is_zero(self):
        assert session_number(datetime(2020, 1, 1, tzinfo=timezone.utc)) == 0

    def test_counts_whole_minutes(self):
        now = datetime(2020, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=90, seconds=59)
        assert session_number(now) == 90

    def test_naive_datetime_treated_as_utc(self):
        assert session_number(datetime(2020, 1, 2)) == 24 * 60


class TestNewSession:
    def test_fields(self):
        now = datetime(2021, 1, 1, tzinfo=timezone.utc)
        session = new_session(now)
        assert len(session.id) >= 10
        assert all(c in "0123456789abcdefghijklmnopqrstuvwxyz" for c in session.id)
        assert session.number == 366 * 24 * 60
        assert session.engaged is True
        assert session.start is True
        assert session.hit_count == 0

    def test_ids_are_random(self):
        assert len({new_session().id for _ in range(50)}) == 50


class TestSessionStore:
    def test_created_once_per_connection(self):
        store = SessionStore()
        conn = ConnInfo(remote_host="10.0.0.1", remote_port=1234)
        assert store.get(conn) is store.get(ConnInfo(remote_host="10.0.0.1", remote_port=1234))
        assert len(store) == 1

    def test_distinct_connections(self):
        store = SessionStore()
        a = store.get(ConnInfo(remote_host="10.0.0.1", remote_port=1))
        b = store.get(ConnInfo(remote_host="10.0.0.1", remote_port=2))
        assert a is not b

    def test_close_forgets_session(self):
        store = SessionStore()
        conn = ConnInfo(remote_host="10.0.0.1")
        first = store.get(conn)
        store.close(conn)
        assert conn not in store
        assert store.get(conn) is not first

    def test_close_unknown_connection(self):
        SessionStore().close(ConnInfo(remote_host="10.0.0.1"))

    def test_least_recently_used_evicted(self):
        store = SessionStore(max_sessions=2)
        a = ConnInfo(remote_host="a")
        b = ConnInfo(remote_host="b")
        c = ConnInfo(remote_host="c")
        store.get(a)
        store.get(b)
        store.get(a)
        store.get(c)
        assert a in store
        assert b not in store
        assert c in store

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SessionStore(max_sessions=0)
