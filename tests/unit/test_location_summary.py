"""Unit tests for cdrlink.analysis.location_summary."""

from __future__ import annotations

from cdrlink.analysis.location_summary import summarize_locations
from cdrlink.models.records import InteractionKind


class TestSummarizeLocations:
    def test_sample_case(self, sample_records):
        summaries = {s.location_id: s for s in summarize_locations(sample_records)}

        tower = summaries["100-200"]
        assert tower.record_count == 5
        assert tower.identifiers == ["8801711000001", "8801811000002"]
        assert tower.total_call_duration == 120 + 60 + 200
        assert tower.address == "Gulshan-1"

    def test_sorted_by_count_then_id(self, sample_records):
        summaries = summarize_locations(sample_records)
        assert [s.location_id for s in summaries] == ["100-200", "100-201", "300-400"]

    def test_call_duration_ignores_sms(self, make_record, at):
        records = [
            make_record("A", "B", at(0), location_id="L1", duration_seconds=60),
            make_record("A", "B", at(1), kind=InteractionKind.SMS_OUT, location_id="L1", duration_seconds=9),
        ]
        assert summarize_locations(records)[0].total_call_duration == 60

    def test_counterpart_is_not_attributed(self, make_record, at):
        summary = summarize_locations([make_record("A", "B", at(0), location_id="L1")])[0]
        assert summary.identifiers == ["A"]

    def test_hourly_and_seen_range(self, make_record, at):
        records = [
            make_record("A", ts=at(120), location_id="L1"),
            make_record("B", ts=at(0), location_id="L1"),
            make_record("C", ts=None, location_id="L1"),
        ]
        summary = summarize_locations(records)[0]

        assert summary.record_count == 3
        assert sum(summary.hourly_activity) == 2
        assert summary.hourly_activity[9] == 1 and summary.hourly_activity[11] == 1
        assert summary.first_seen == at(0)
        assert summary.last_seen == at(120)

    def test_address_skips_placeholder(self, make_record, at):
        records = [
            make_record("A", ts=at(0), location_id="L1", address="n/a"),
            make_record("A", ts=at(1), location_id="L1", address="Banani"),
        ]
        assert summarize_locations(records)[0].address == "Banani"

    def test_records_without_location_are_skipped(self, make_record):
        assert summarize_locations([make_record("A", "B")]) == []
