"""Co-presence cluster detection for cdrlink.

Finds groups of distinct identifiers observed at the same location (cell
tower) within a short time window. Overlapping anchors inside one window are
collapsed through a (location, time bucket, participants) dedup key.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from config.defaults import (
    CANCEL_CHECK_INTERVAL,
    COPRESENCE_MIN_CLUSTER_SIZE,
    COPRESENCE_WINDOW_SECONDS,
)
from cdrlink.models.copresence import CoPresenceEvent
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked, checkpoint
from cdrlink.utils.date_utils import from_epoch_seconds, to_epoch_seconds

logger = logging.getLogger(__name__)


def detect_copresence(
    records: Iterable[InteractionRecord],
    window_seconds: float = COPRESENCE_WINDOW_SECONDS,
    min_cluster_size: int = COPRESENCE_MIN_CLUSTER_SIZE,
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> List[CoPresenceEvent]:
    """Detect co-presence events: distinct identifiers sharing a location in time.

    Each record of a location acts in turn as an anchor; the window holds the
    anchor and every later record at most ``window_seconds`` after it. A window
    with at least ``min_cluster_size`` distinct identifiers becomes a candidate
    keyed by (location, floor(anchor / window_seconds), participants). A
    candidate is dropped when its key was already emitted, or when its
    participants are a subset of an event already emitted for the same
    location and bucket.

    Args:
        records: Interaction records. Records need a location_id, an
            identifier_a and a timestamp; others are skipped.
        window_seconds: Window length in seconds (inclusive upper bound).
        min_cluster_size: Minimum number of distinct identifiers (>= 2).
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        CoPresenceEvent list sorted by representative time, then location.

    Raises:
        ValueError: If ``window_seconds`` <= 0 or ``min_cluster_size`` < 2.
    """
    if window_seconds <= 0:
        raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
    if min_cluster_size < 2:
        raise ValueError(f"min_cluster_size must be >= 2, got {min_cluster_size}")

    groups: Dict[str, List[Tuple[float, InteractionRecord]]] = defaultdict(list)
    skipped = 0
    for record in checked(records, cancel_token, check_interval):
        if not record.location_id or not record.identifier_a or record.timestamp is None:
            skipped += 1
            continue
        groups[record.location_id].append((to_epoch_seconds(record.timestamp), record))
    if skipped:
        logger.debug("Co-presence: skipped %d records without location, identifier or timestamp", skipped)

    events: List[CoPresenceEvent] = []
    for location_id in sorted(groups):
        checkpoint(cancel_token)
        events.extend(
            _scan_location(location_id, groups[location_id], window_seconds, min_cluster_size)
        )

    events.sort(key=lambda e: (to_epoch_seconds(e.representative_time), e.location_id, e.participants))
    logger.info(
        "Co-presence: %d events across %d locations (window=%ss, min_size=%d)",
        len(events),
        len(groups),
        window_seconds,
        min_cluster_size,
    )
    return events


def _scan_location(
    location_id: str,
    entries: List[Tuple[float, InteractionRecord]],
    window_seconds: float,
    min_cluster_size: int,
) -> List[CoPresenceEvent]:
    entries.sort(key=lambda e: e[0])
    emitted_keys: Set[Tuple[int, Tuple[str, ...]]] = set()
    emitted_by_bucket: Dict[int, List[FrozenSet[str]]] = defaultdict(list)
    events: List[CoPresenceEvent] = []

    for i, (anchor_epoch, anchor) in enumerate(entries):
        window_end = anchor_epoch + window_seconds
        members = [entries[i]]
        for j in range(i + 1, len(entries)):
            if entries[j][0] > window_end:
                break
            members.append(entries[j])

        participants = sorted({rec.identifier_a for _, rec in members})
        if len(participants) < min_cluster_size:
            continue

        bucket = math.floor(anchor_epoch / window_seconds)
        key = (bucket, tuple(participants))
        if key in emitted_keys:
            continue
        participant_set = frozenset(participants)
        if any(participant_set <= seen for seen in emitted_by_bucket[bucket]):
            continue
        emitted_keys.add(key)
        emitted_by_bucket[bucket].append(participant_set)

        mean_epoch = sum(epoch for epoch, _ in members) / len(members)
        address = next((rec.address for _, rec in members if rec.address), None)
        events.append(
            CoPresenceEvent(
                location_id=location_id,
                representative_time=from_epoch_seconds(mean_epoch, anchor.timestamp),
                participants=participants,
                record_count=len(members),
                time_bucket=bucket,
                address=address,
                record_ids=[rec.record_id for _, rec in members if rec.record_id],
            )
        )
    return events
