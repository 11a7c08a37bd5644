"""Unit tests for cdrlink.models.records.

Covers:
- InteractionKind.from_usage_type: operator conventions, presence, failures
- clean_optional: placeholder handling
- InteractionRecord.from_dict / to_dict: raw CDR columns, normalized names
- InteractionRecord helpers: parties, pair, immutability
"""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from cdrlink.models.records import InteractionKind, InteractionRecord, clean_optional


# ── InteractionKind ──────────────────────────────────────────────────────────────

class TestFromUsageType:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("MOC", InteractionKind.CALL_OUT),
            ("MTC", InteractionKind.CALL_IN),
            ("SMSMO", InteractionKind.SMS_OUT),
            ("SMSMT", InteractionKind.SMS_IN),
            ("VOICEIN", InteractionKind.CALL_IN),
            ("Incoming Call", InteractionKind.CALL_IN),
            ("Outgoing SMS", InteractionKind.SMS_OUT),
            ("SMS IN", InteractionKind.SMS_IN),
            ("SMS", InteractionKind.SMS_OUT),
            ("call_in", InteractionKind.CALL_IN),
            ("GPRS", InteractionKind.PRESENCE),
        ],
    )
    def test_known_usage_types(self, raw, expected):
        """Operator usage strings must map onto the matching interaction kind."""
        assert InteractionKind.from_usage_type(raw) is expected

    def test_blank_usage_type_is_presence(self):
        """Missing or blank usage types classify as presence pings."""
        assert InteractionKind.from_usage_type(None) is InteractionKind.PRESENCE
        assert InteractionKind.from_usage_type("   ") is InteractionKind.PRESENCE

    def test_unknown_usage_type_raises(self):
        """A usage type that matches no convention must raise ValueError."""
        with pytest.raises(ValueError, match="Unclassifiable"):
            InteractionKind.from_usage_type("USSD-BALANCE")

    def test_kind_helpers(self):
        """is_call / is_sms / is_outgoing / is_incoming must partition the kinds."""
        assert InteractionKind.CALL_OUT.is_call and InteractionKind.CALL_OUT.is_outgoing
        assert InteractionKind.SMS_IN.is_sms and InteractionKind.SMS_IN.is_incoming
        presence = InteractionKind.PRESENCE
        assert not (presence.is_call or presence.is_sms or presence.is_outgoing or presence.is_incoming)


class TestCleanOptional:
    def test_placeholders_become_none(self):
        """Blank strings and n/a-style placeholders must normalize to None."""
        for raw in ("", "  ", "n/a", "N/A", "null", "-", None):
            assert clean_optional(raw) is None

    def test_values_are_stripped(self):
        """Real values are returned stripped, and numbers become strings."""
        assert clean_optional("  8801711000001 ") == "8801711000001"
        assert clean_optional(470010) == "470010"


# ── InteractionRecord ────────────────────────────────────────────────────────────

class TestFromDict:
    def test_raw_cdr_columns(self):
        """Raw CDR column names must be mapped onto record attributes."""
        record = InteractionRecord.from_dict(
            {
                "APARTY": "8801711000001",
                "BPARTY": "8801911000003",
                "START_DTTIME": "15/01/2024 10:30:00",
                "USAGE_TYPE": "MOC",
                "CALL_DURATION": "45",
                "IMEI": "356938035643809",
                "IMSI": "470010123456789",
                "LACSTARTA": "100",
                "CISTARTA": "200",
                "ADDRESS": "n/a",
                "sourceFileId": "case_a",
                "id": "r-17",
            }
        )

        assert record.identifier_a == "8801711000001"
        assert record.identifier_b == "8801911000003"
        assert record.timestamp == datetime(2024, 1, 15, 10, 30)
        assert record.kind is InteractionKind.CALL_OUT
        assert record.duration_seconds == 45
        assert record.location_id == "100-200"
        assert record.address is None
        assert record.source_id == "case_a"
        assert record.record_id == "r-17"

    def test_unparseable_timestamp_becomes_none(self):
        """A garbage timestamp must not raise; the record simply has no time."""
        record = InteractionRecord.from_dict(
            {"identifier_a": "A", "timestamp": "not a date", "kind": "presence"}
        )
        assert record.timestamp is None

    def test_invalid_duration_defaults_to_zero(self):
        """Non-numeric or negative durations must normalize to 0."""
        assert InteractionRecord.from_dict({"APARTY": "A", "CALL_DURATION": "abc"}).duration_seconds == 0
        assert InteractionRecord.from_dict({"APARTY": "A", "CALL_DURATION": "-5"}).duration_seconds == 0

    def test_unclassifiable_kind_raises(self):
        """from_dict raises ValueError only when the kind cannot be classified."""
        with pytest.raises(ValueError):
            InteractionRecord.from_dict({"APARTY": "A", "USAGE_TYPE": "USSD-BALANCE"})

    def test_to_dict_is_accepted_by_from_dict(self, make_record):
        """A serialized record must load back to an equal record."""
        original = make_record(
            "A",
            "B",
            datetime(2024, 1, 15, 10, 30),
            kind=InteractionKind.SMS_IN,
            location_id="100-200",
            source_id="case_a",
            record_id="r1",
        )
        assert InteractionRecord.from_dict(original.to_dict()) == original


class TestRecordHelpers:
    def test_pair_is_unordered(self, make_record):
        """A→B and B→A records must share the same pair."""
        assert make_record("A", "B").pair == make_record("B", "A").pair

    def test_pair_requires_both_identifiers(self, make_record):
        """Presence records have no pair."""
        assert make_record("A").pair is None

    def test_parties_skips_missing_endpoints(self, make_record):
        """parties lists only the identifiers that are present."""
        assert make_record("A", "B").parties == ("A", "B")
        assert make_record("A").parties == ("A",)

    def test_record_is_immutable(self, make_record):
        """Records are frozen once built."""
        record = make_record("A", "B")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.identifier_a = "C"
