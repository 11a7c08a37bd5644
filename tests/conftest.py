"""Shared pytest fixtures for cdrlink tests.

Records are built in code rather than loaded from files so each test states
exactly the timestamps and identifiers it depends on. All timestamps are
naive and fall on Monday 2024-01-15 unless a test says otherwise.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytest

from cdrlink.models.records import InteractionKind, InteractionRecord

BASE_TIME = datetime(2024, 1, 15, 9, 0, 0)


def _make_record(
    a: Optional[str],
    b: Optional[str] = None,
    ts: Optional[datetime] = BASE_TIME,
    kind: Optional[InteractionKind] = None,
    **fields,
) -> InteractionRecord:
    if kind is None:
        kind = InteractionKind.CALL_OUT if b else InteractionKind.PRESENCE
    return InteractionRecord(identifier_a=a, identifier_b=b, timestamp=ts, kind=kind, **fields)


# ── Factories ────────────────────────────────────────────────────────────────────

@pytest.fixture
def make_record() -> Callable[..., InteractionRecord]:
    """Factory building an InteractionRecord; kind defaults to call_out, or presence without b."""
    return _make_record


@pytest.fixture
def at() -> Callable[..., datetime]:
    """Factory returning BASE_TIME shifted by the given minutes (and optional seconds)."""

    def _at(minutes: float = 0, seconds: float = 0) -> datetime:
        return BASE_TIME + timedelta(minutes=minutes, seconds=seconds)

    return _at


# ── Scenario fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def three_call_chain() -> List[InteractionRecord]:
    """A→B at 10:00:00, A→B at 10:04:00, B→A at 10:05:00."""
    day = datetime(2024, 1, 15)
    return [
        _make_record("A", "B", day.replace(hour=10, minute=0), record_id="r1", duration_seconds=30),
        _make_record("A", "B", day.replace(hour=10, minute=4), record_id="r2", duration_seconds=45),
        _make_record("B", "A", day.replace(hour=10, minute=5), record_id="r3", duration_seconds=60),
    ]


@pytest.fixture
def xyz_copresence() -> List[InteractionRecord]:
    """X at 09:00, 09:01, 09:02; Y at 09:01; Z at 09:03; all at location 100-200."""
    loc = "100-200"
    return [
        _make_record("X", ts=BASE_TIME, location_id=loc, record_id="x1", address="Gulshan-1"),
        _make_record("X", ts=BASE_TIME + timedelta(minutes=1), location_id=loc, record_id="x2"),
        _make_record("Y", ts=BASE_TIME + timedelta(minutes=1), location_id=loc, record_id="y1"),
        _make_record("X", ts=BASE_TIME + timedelta(minutes=2), location_id=loc, record_id="x3"),
        _make_record("Z", ts=BASE_TIME + timedelta(minutes=3), location_id=loc, record_id="z1"),
    ]


@pytest.fixture
def sample_records() -> List[InteractionRecord]:
    """Two-source case file with calls, SMS, presence pings and a SIM swap.

    Source "case_a" belongs to 8801711000001, source "case_b" to 8801811000002.
    8801911000003 is contacted from both sources.
    """
    owner_a = "8801711000001"
    owner_b = "8801811000002"
    shared = "8801911000003"
    other = "8801511000004"

    def rec(a, b, minutes, kind, source, **fields):
        return InteractionRecord(
            identifier_a=a,
            identifier_b=b,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
            kind=kind,
            source_id=source,
            **fields,
        )

    out, inc = InteractionKind.CALL_OUT, InteractionKind.CALL_IN
    sms_out, ping = InteractionKind.SMS_OUT, InteractionKind.PRESENCE
    return [
        rec(owner_a, shared, 0, out, "case_a", duration_seconds=120, device_id="IMEI-1",
            sim_id="IMSI-1", location_id="100-200", address="Gulshan-1", record_id="a1"),
        rec(owner_a, shared, 10, out, "case_a", duration_seconds=60, device_id="IMEI-1",
            sim_id="IMSI-1", location_id="100-200", record_id="a2"),
        rec(owner_a, shared, 12, inc, "case_a", duration_seconds=30, device_id="IMEI-1",
            sim_id="IMSI-1", location_id="100-201", record_id="a3"),
        rec(owner_a, other, 90, sms_out, "case_a", device_id="IMEI-1",
            sim_id="IMSI-9", location_id="100-201", record_id="a4"),
        rec(owner_a, None, 95, ping, "case_a", device_id="IMEI-1",
            sim_id="IMSI-9", location_id="100-200", record_id="a5"),
        rec(owner_b, shared, 1, out, "case_b", duration_seconds=200, device_id="IMEI-2",
            sim_id="IMSI-2", location_id="100-200", address="Gulshan-1", record_id="b1"),
        rec(owner_b, shared, 3, sms_out, "case_b", device_id="IMEI-2",
            sim_id="IMSI-2", location_id="100-200", record_id="b2"),
        rec(owner_b, owner_a, 30, out, "case_b", duration_seconds=15, device_id="IMEI-2",
            sim_id="IMSI-2", location_id="300-400", record_id="b3"),
        rec(owner_b, None, 40, ping, "case_b", device_id="IMEI-2",
            sim_id="IMSI-2", location_id="300-400", record_id="b4"),
    ]
