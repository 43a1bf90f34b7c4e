"""Tests for the in-memory session event ledger."""
import threading

import pytest

from app.services.session_ledger import SessionEventLedger, SessionEventRecord


def _record(i: int) -> SessionEventRecord:
    return SessionEventRecord(
        title=f"Meeting {i}",
        start_iso=f"2026-03-20T10:{i % 60:02d}:00-04:00",
        timezone="America/New_York",
        event_link=f"https://calendar.example.com/e{i}",
    )


class TestSessionEventLedger:
    def test_unknown_session_is_empty(self):
        assert SessionEventLedger().list("missing") == []

    def test_record_and_list_in_order(self):
        ledger = SessionEventLedger()
        ledger.record("s1", _record(1))
        ledger.record("s1", _record(2))
        ledger.record("s2", _record(3))
        assert [r.title for r in ledger.list("s1")] == ["Meeting 1", "Meeting 2"]
        assert [r.title for r in ledger.list("s2")] == ["Meeting 3"]

    def test_oldest_entry_evicted_past_capacity(self):
        ledger = SessionEventLedger(max_entries=50)
        for i in range(55):
            ledger.record("s1", _record(i))
        titles = [r.title for r in ledger.list("s1")]
        assert len(titles) == 50
        assert titles[0] == "Meeting 5"
        assert titles[-1] == "Meeting 54"

    def test_list_returns_a_copy(self):
        ledger = SessionEventLedger()
        ledger.record("s1", _record(1))
        ledger.list("s1").clear()
        assert len(ledger.list("s1")) == 1

    def test_evict_and_clear(self):
        ledger = SessionEventLedger()
        ledger.record("s1", _record(1))
        ledger.record("s2", _record(2))
        ledger.evict("s1")
        assert ledger.list("s1") == []
        assert len(ledger.list("s2")) == 1
        ledger.clear()
        assert ledger.list("s2") == []

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            SessionEventLedger(max_entries=0)

    def test_concurrent_records_are_not_lost(self):
        ledger = SessionEventLedger(max_entries=1000)

        def worker(offset):
            for i in range(100):
                ledger.record("shared", _record(offset + i))

        threads = [threading.Thread(target=worker, args=(n * 100,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(ledger.list("shared")) == 800
