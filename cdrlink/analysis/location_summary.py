"""Per-location (cell tower) activity summaries for cdrlink.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from config.defaults import CANCEL_CHECK_INTERVAL
from cdrlink.models.copresence import LocationSummary
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked
from cdrlink.utils.date_utils import to_epoch_seconds

logger = logging.getLogger(__name__)


def summarize_locations(
    records: Iterable[InteractionRecord],
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> List[LocationSummary]:
    """Summarize activity per location.

    Only the record owner (identifier_a) is attributed to a location. The
    address is the first non-empty value other than "n/a" seen at the location.

    Args:
        records: Interaction records; records without location_id are skipped.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        LocationSummary list sorted by record count descending, then location id.
    """
    summaries: Dict[str, LocationSummary] = {}
    identifiers: Dict[str, set] = {}

    for record in checked(records, cancel_token, check_interval):
        loc = record.location_id
        if not loc:
            continue
        summary = summaries.get(loc)
        if summary is None:
            summary = summaries[loc] = LocationSummary(location_id=loc)
            identifiers[loc] = set()
        summary.record_count += 1
        if record.kind.is_call:
            summary.total_call_duration += record.duration_seconds
        if record.identifier_a:
            identifiers[loc].add(record.identifier_a)
        if summary.address is None and record.address and record.address.lower() != "n/a":
            summary.address = record.address

        ts = record.timestamp
        if ts is None:
            continue
        summary.hourly_activity[ts.hour] += 1
        if summary.first_seen is None or to_epoch_seconds(ts) < to_epoch_seconds(summary.first_seen):
            summary.first_seen = ts
        if summary.last_seen is None or to_epoch_seconds(ts) > to_epoch_seconds(summary.last_seen):
            summary.last_seen = ts

    for loc, summary in summaries.items():
        summary.identifiers = sorted(identifiers[loc])

    result = sorted(summaries.values(), key=lambda s: (-s.record_count, s.location_id))
    logger.info("Location summary: %d locations", len(result))
    return result
