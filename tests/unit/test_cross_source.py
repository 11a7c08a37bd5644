"""Unit tests for cdrlink.analysis.cross_source."""

from __future__ import annotations

import pytest

from cdrlink.analysis.cross_source import analyze_cross_source_links
from cdrlink.utils.cancellation import AnalysisCancelled, CancellationToken


@pytest.fixture
def two_sources(make_record, at):
    """f1: A→C, A→D.  f2: B→C, C→B."""
    return {
        "f1": [
            make_record("A", "C", at(0), location_id="L1"),
            make_record("A", "D", at(1), location_id="L1"),
        ],
        "f2": [
            make_record("B", "C", at(2), location_id="L2"),
            make_record("C", "B", at(3), location_id="L3", device_id="IMEI-C", address="Banani"),
        ],
    }


def _by_id(results):
    return {r.identifier: r for r in results}


class TestClassification:
    def test_common_and_notable(self, two_sources):
        """C is in both sources; B appears in both roles in f2; A and D are dropped."""
        results = _by_id(analyze_cross_source_links(two_sources))

        assert set(results) == {"B", "C"}
        assert results["C"].classification == "common"
        assert results["C"].total_occurrences == 3
        assert results["B"].classification == "notable"
        assert results["B"].details is None

    def test_role_tallies(self, two_sources):
        c = _by_id(analyze_cross_source_links(two_sources))["C"]
        tallies = {s.source_id: (s.as_first, s.as_second) for s in c.sources}
        assert tallies == {"f1": (0, 1), "f2": (1, 1)}

    def test_common_iff_in_every_source(self, two_sources):
        results = analyze_cross_source_links(two_sources)
        for result in results:
            present = {s.source_id for s in result.sources}
            assert result.is_common == (present == set(two_sources))

    def test_common_sorted_first(self, two_sources):
        results = analyze_cross_source_links(two_sources)
        assert [r.identifier for r in results] == ["C", "B"]

    def test_single_source_makes_every_identifier_common(self, two_sources):
        results = analyze_cross_source_links(two_sources, analyzed_sources=["f1"])
        assert {r.identifier for r in results} == {"A", "C", "D"}
        assert all(r.is_common for r in results)

    def test_self_loop_counts_in_both_roles(self, make_record, at):
        """A record from A to A puts A in both roles, which makes it notable."""
        sources = {
            "s1": [make_record("A", "A", at(0)), make_record("E", "F", at(1))],
            "s2": [make_record("C", "D", at(2))],
        }
        results = _by_id(analyze_cross_source_links(sources))

        assert set(results) == {"A"}
        assert results["A"].classification == "notable"
        assert [(s.as_first, s.as_second) for s in results["A"].sources] == [(1, 1)]

    def test_identifier_in_several_but_not_all_sources_is_notable(self, two_sources, make_record):
        sources = dict(two_sources, f3=[make_record("E", "F")])
        results = _by_id(analyze_cross_source_links(sources))

        assert results["C"].classification == "notable"
        assert all(not r.is_common for r in results.values())


class TestDetails:
    def test_per_source_detail_for_common_identifier(self, two_sources):
        c = _by_id(analyze_cross_source_links(two_sources))["C"]
        details = {d.source_id: d for d in c.details}

        assert details["f1"].callers == ["A"]
        assert details["f1"].contacted == []
        assert details["f1"].record_count == 1
        assert details["f2"].contacted == ["B"]
        assert details["f2"].callers == ["B"]
        assert details["f2"].record_count == 2

    def test_locations_and_devices_only_as_owner(self, two_sources):
        c = _by_id(analyze_cross_source_links(two_sources))["C"]
        details = {d.source_id: d for d in c.details}

        assert details["f1"].location_ids == []
        assert details["f2"].location_ids == ["L3"]
        assert details["f2"].device_ids == ["IMEI-C"]
        assert details["f2"].addresses == ["Banani"]

    def test_self_loop_detail_counts_record_once(self, make_record, at):
        sources = {"s1": [make_record("A", "A", at(0))]}
        detail = _by_id(analyze_cross_source_links(sources))["A"].details[0]

        assert detail.record_count == 1
        assert detail.contacted == ["A"]
        assert detail.callers == ["A"]


class TestValidation:
    def test_unknown_source_raises(self, two_sources):
        with pytest.raises(ValueError, match="nope"):
            analyze_cross_source_links(two_sources, analyzed_sources=["f1", "nope"])

    def test_no_sources(self):
        assert analyze_cross_source_links({}) == []

    def test_duplicate_analyzed_sources_are_collapsed(self, two_sources):
        results = _by_id(analyze_cross_source_links(two_sources, analyzed_sources=["f1", "f2", "f1"]))
        assert results["C"].is_common

    def test_cancelled_token_aborts(self, two_sources):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelled):
            analyze_cross_source_links(two_sources, cancel_token=token)
