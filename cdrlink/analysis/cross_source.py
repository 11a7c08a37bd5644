"""Cross-source link analysis for cdrlink.

Given records grouped by source (one CDR export per target number, typically),
finds identifiers present in every analyzed source ("common") and identifiers
that otherwise tie sources together ("notable": seen in several sources, or in
both roles within one source).

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from config.defaults import CANCEL_CHECK_INTERVAL
from cdrlink.models.links import CrossSourceLinkResult, SourceDetail, SourceInteraction
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked

logger = logging.getLogger(__name__)


@dataclass
class _DetailAccumulator:
    contacted: Set[str] = field(default_factory=set)
    callers: Set[str] = field(default_factory=set)
    locations: Set[str] = field(default_factory=set)
    devices: Set[str] = field(default_factory=set)
    addresses: Set[str] = field(default_factory=set)
    record_count: int = 0


def analyze_cross_source_links(
    records_by_source: Mapping[str, Iterable[InteractionRecord]],
    analyzed_sources: Optional[Sequence[str]] = None,
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> List[CrossSourceLinkResult]:
    """Find identifiers that link the analyzed sources together.

    Args:
        records_by_source: Records keyed by source id.
        analyzed_sources: Source ids to analyze; defaults to every key of
            ``records_by_source``.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        CrossSourceLinkResult list: common identifiers first, then by total
        occurrences descending, then identifier.

    Raises:
        ValueError: If an analyzed source id is not a key of ``records_by_source``.
    """
    if analyzed_sources is None:
        sources = list(records_by_source)
    else:
        missing = [s for s in analyzed_sources if s not in records_by_source]
        if missing:
            raise ValueError(f"Unknown source ids in analyzed_sources: {missing}")
        sources = list(dict.fromkeys(analyzed_sources))

    if not sources:
        return []

    snapshot: Dict[str, List[InteractionRecord]] = {
        source: list(records_by_source[source]) for source in sources
    }

    # ── Pass 1: role tallies per identifier and source ────────────────────────
    tallies: Dict[str, Dict[str, SourceInteraction]] = defaultdict(dict)

    def _tally(identifier: str, source: str) -> SourceInteraction:
        entry = tallies[identifier].get(source)
        if entry is None:
            entry = tallies[identifier][source] = SourceInteraction(source_id=source)
        return entry

    for source in sources:
        for record in checked(snapshot[source], cancel_token, check_interval):
            a, b = record.identifier_a, record.identifier_b
            if a:
                _tally(a, source).as_first += 1
            # A self-loop places the identifier in both roles
            if b:
                _tally(b, source).as_second += 1

    results: List[CrossSourceLinkResult] = []
    common: Set[str] = set()
    for identifier, per_source in tallies.items():
        present = [per_source[s] for s in sources if s in per_source]
        if len(present) == len(sources):
            classification = "common"
            common.add(identifier)
        elif len(present) > 1 or any(t.as_first and t.as_second for t in present):
            classification = "notable"
        else:
            continue
        results.append(
            CrossSourceLinkResult(
                identifier=identifier,
                classification=classification,
                sources=present,
                total_occurrences=sum(t.total for t in present),
            )
        )

    # ── Pass 2: per-source detail for common identifiers ──────────────────────
    if common:
        details: Dict[str, Dict[str, _DetailAccumulator]] = {
            identifier: {s: _DetailAccumulator() for s in sources} for identifier in common
        }
        for source in sources:
            for record in checked(snapshot[source], cancel_token, check_interval):
                a, b = record.identifier_a, record.identifier_b
                if a in common:
                    acc = details[a][source]
                    acc.record_count += 1
                    if b:
                        acc.contacted.add(b)
                    if record.location_id:
                        acc.locations.add(record.location_id)
                    if record.device_id:
                        acc.devices.add(record.device_id)
                    if record.address:
                        acc.addresses.add(record.address)
                if b in common:
                    acc = details[b][source]
                    if b != a:
                        acc.record_count += 1
                    if a:
                        acc.callers.add(a)

        for result in results:
            if result.identifier in common:
                result.details = [
                    SourceDetail(
                        source_id=source,
                        contacted=sorted(acc.contacted),
                        callers=sorted(acc.callers),
                        location_ids=sorted(acc.locations),
                        device_ids=sorted(acc.devices),
                        addresses=sorted(acc.addresses),
                        record_count=acc.record_count,
                    )
                    for source, acc in details[result.identifier].items()
                ]

    results.sort(key=lambda r: (not r.is_common, -r.total_occurrences, r.identifier))
    logger.info(
        "Cross-source links: %d common, %d notable across %d sources",
        len(common),
        len(results) - len(common),
        len(sources),
    )
    return results
