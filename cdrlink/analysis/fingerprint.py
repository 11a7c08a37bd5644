"""Behavioral fingerprint extraction and comparison for cdrlink.

A fingerprint summarizes when and how an identifier communicates: hourly and
weekday activity, average call length, call/SMS directionality, dominant time
of day, call-vs-SMS focus, and most-visited locations.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from config.defaults import (
    CANCEL_CHECK_INTERVAL,
    DIRECTIONALITY_INCOMING_RATIO,
    DIRECTIONALITY_OUTGOING_RATIO,
    SIMILARITY_LOW_VOLUME_FACTOR,
    SIMILARITY_MIN_INTERACTIONS,
    SIMILARITY_VARIED_SLOT_CREDIT,
    TOP_LOCATIONS,
)
from config.settings import SimilarityWeights
from cdrlink.models.fingerprints import (
    DAY_NAMES,
    BehavioralFingerprint,
    FingerprintComparison,
    LocationVisit,
    SimilarityComponent,
)
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked
from cdrlink.utils.date_utils import time_slot_for_hour

logger = logging.getLogger(__name__)

_SLOTS = ("morning", "afternoon", "evening", "night")


@dataclass
class _ProfileAccumulator:
    total: int = 0
    hourly: List[int] = field(default_factory=lambda: [0] * 24)
    daily: List[int] = field(default_factory=lambda: [0] * 7)
    call_count: int = 0
    call_duration: int = 0
    sms_count: int = 0
    outgoing_calls: int = 0
    outgoing_sms: int = 0
    locations: Counter = field(default_factory=Counter)
    addresses: Dict[str, str] = field(default_factory=dict)


def compute_fingerprints(
    records: Iterable[InteractionRecord],
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> List[BehavioralFingerprint]:
    """Compute a behavioral fingerprint for every identifier in the records.

    Both endpoints of a record contribute to their own profile. Directional
    counters follow the role of the endpoint: the initiator of an outgoing
    kind counts it as outgoing, its counterpart as incoming, and the reverse
    for incoming kinds. Locations belong to the record owner (identifier_a).

    Args:
        records: Interaction records. Records without a timestamp or without
            identifier_a are skipped, so every histogram sums to the total.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        BehavioralFingerprint list sorted by total interactions descending,
        then identifier.
    """
    profiles: Dict[str, _ProfileAccumulator] = {}
    skipped = 0

    for record in checked(records, cancel_token, check_interval):
        ts = record.timestamp
        if ts is None or not record.identifier_a:
            skipped += 1
            continue
        kind = record.kind
        for endpoint in dict.fromkeys(record.parties):
            prof = profiles.get(endpoint)
            if prof is None:
                prof = profiles[endpoint] = _ProfileAccumulator()
            prof.total += 1
            prof.hourly[ts.hour] += 1
            prof.daily[ts.weekday()] += 1

            is_owner = endpoint == record.identifier_a
            initiated = is_owner != kind.is_incoming
            if kind.is_call:
                prof.call_count += 1
                prof.call_duration += record.duration_seconds
                if initiated:
                    prof.outgoing_calls += 1
            elif kind.is_sms:
                prof.sms_count += 1
                if initiated:
                    prof.outgoing_sms += 1

            if is_owner and record.location_id:
                prof.locations[record.location_id] += 1
                if (
                    record.address
                    and record.address.lower() != "n/a"
                    and record.location_id not in prof.addresses
                ):
                    prof.addresses[record.location_id] = record.address

    if skipped:
        logger.debug("Fingerprints: skipped %d records without timestamp or identifier_a", skipped)

    fingerprints = [_finalize(identifier, prof) for identifier, prof in profiles.items()]
    fingerprints.sort(key=lambda fp: (-fp.total_interactions, fp.identifier))
    logger.info("Fingerprints: computed %d identifier profiles", len(fingerprints))
    return fingerprints


def _finalize(identifier: str, prof: _ProfileAccumulator) -> BehavioralFingerprint:
    avg_duration = prof.call_duration / prof.call_count if prof.call_count else 0.0

    if prof.call_count and prof.sms_count:
        focus = "mixed"
    elif prof.call_count:
        focus = "call"
    elif prof.sms_count:
        focus = "sms"
    else:
        focus = "n/a"

    top = sorted(prof.locations.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_LOCATIONS]

    return BehavioralFingerprint(
        identifier=identifier,
        total_interactions=prof.total,
        hourly_activity=list(prof.hourly),
        daily_activity=list(prof.daily),
        avg_call_duration_seconds=round(avg_duration, 2),
        call_directionality=classify_directionality(prof.outgoing_calls, prof.call_count),
        sms_directionality=classify_directionality(prof.outgoing_sms, prof.sms_count),
        dominant_time_slot=dominant_time_slot(prof.hourly),
        primary_activity_focus=focus,
        top_locations=[
            LocationVisit(location_id=loc, count=count, address=prof.addresses.get(loc))
            for loc, count in top
        ],
    )


def classify_directionality(outgoing: int, total: int) -> str:
    """Classify an outgoing/total ratio as outgoing, incoming, balanced or n/a."""
    if total <= 0:
        return "n/a"
    ratio = outgoing / total
    if ratio > DIRECTIONALITY_OUTGOING_RATIO:
        return "outgoing"
    if ratio < DIRECTIONALITY_INCOMING_RATIO:
        return "incoming"
    return "balanced"


def dominant_time_slot(hourly: Sequence[int]) -> str:
    """Return the time slot with the strictly highest activity.

    Args:
        hourly: 24 hourly interaction counts.

    Returns:
        "morning", "afternoon", "evening" or "night"; "varied" when several
        slots share the maximum; "n/a" when there is no activity.
    """
    slots = dict.fromkeys(_SLOTS, 0)
    for hour, count in enumerate(hourly):
        slots[time_slot_for_hour(hour)] += count
    peak = max(slots.values())
    if peak == 0:
        return "n/a"
    winners = [slot for slot, count in slots.items() if count == peak]
    return winners[0] if len(winners) == 1 else "varied"


# ── Similarity ────────────────────────────────────────────────────────────────

def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two histograms after normalizing each to sum 1."""
    sum_a, sum_b = sum(a), sum(b)
    if sum_a == 0 or sum_b == 0:
        return 0.0
    na = [x / sum_a for x in a]
    nb = [x / sum_b for x in b]
    dot = sum(x * y for x, y in zip(na, nb))
    mag = math.sqrt(sum(x * x for x in na)) * math.sqrt(sum(y * y for y in nb))
    return dot / mag if mag else 0.0


def _jaccard(a: set, b: set) -> float:
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def compare_fingerprints(
    fp_a: BehavioralFingerprint,
    fp_b: BehavioralFingerprint,
    weights: Optional[SimilarityWeights] = None,
) -> FingerprintComparison:
    """Score how alike two behavioral fingerprints are, from 0 to 100.

    Each dimension yields a score in [0, 1] which is weighted and summed.
    When either fingerprint has fewer than SIMILARITY_MIN_INTERACTIONS
    interactions the total is scaled by SIMILARITY_LOW_VOLUME_FACTOR.

    Args:
        fp_a: First fingerprint.
        fp_b: Second fingerprint.
        weights: Per-dimension weights; defaults to SimilarityWeights().

    Returns:
        FingerprintComparison with the per-dimension breakdown.
    """
    w = weights or SimilarityWeights()
    components: List[SimilarityComponent] = []

    def add(metric: str, score: float, weight: float, value_a: str = "", value_b: str = "") -> None:
        components.append(
            SimilarityComponent(
                metric=metric,
                score=round(score, 4),
                weight=weight,
                value_a=value_a,
                value_b=value_b,
            )
        )

    add("hourly_activity", _cosine(fp_a.hourly_activity, fp_b.hourly_activity), w.hourly)
    add(
        "daily_activity",
        _cosine(fp_a.daily_activity, fp_b.daily_activity),
        w.daily,
        _peak_day(fp_a),
        _peak_day(fp_b),
    )

    dur_a, dur_b = fp_a.avg_call_duration_seconds, fp_b.avg_call_duration_seconds
    longest = max(dur_a, dur_b)
    duration_score = 1.0 if longest == 0 else 1.0 - abs(dur_a - dur_b) / longest
    add("avg_call_duration", duration_score, w.duration, f"{dur_a:.1f}s", f"{dur_b:.1f}s")

    add(
        "activity_focus",
        1.0 if fp_a.primary_activity_focus == fp_b.primary_activity_focus else 0.0,
        w.focus,
        fp_a.primary_activity_focus,
        fp_b.primary_activity_focus,
    )

    slot_a, slot_b = fp_a.dominant_time_slot, fp_b.dominant_time_slot
    if slot_a == slot_b:
        slot_score = 1.0
    elif "varied" in (slot_a, slot_b):
        slot_score = SIMILARITY_VARIED_SLOT_CREDIT
    else:
        slot_score = 0.0
    add("dominant_time_slot", slot_score, w.time_slot, slot_a, slot_b)

    locs_a = {v.location_id for v in fp_a.top_locations}
    locs_b = {v.location_id for v in fp_b.top_locations}
    add(
        "top_locations",
        _jaccard(locs_a, locs_b),
        w.locations,
        ", ".join(sorted(locs_a)),
        ", ".join(sorted(locs_b)),
    )

    add(
        "call_directionality",
        1.0 if fp_a.call_directionality == fp_b.call_directionality else 0.0,
        w.call_direction,
        fp_a.call_directionality,
        fp_b.call_directionality,
    )
    add(
        "sms_directionality",
        1.0 if fp_a.sms_directionality == fp_b.sms_directionality else 0.0,
        w.sms_direction,
        fp_a.sms_directionality,
        fp_b.sms_directionality,
    )

    total = sum(c.score * c.weight for c in components)
    low_volume = min(fp_a.total_interactions, fp_b.total_interactions) < SIMILARITY_MIN_INTERACTIONS
    if low_volume:
        total *= SIMILARITY_LOW_VOLUME_FACTOR

    return FingerprintComparison(
        identifier_a=fp_a.identifier,
        identifier_b=fp_b.identifier,
        components=components,
        low_volume_adjusted=low_volume,
        overall_score=round(max(0.0, min(total, 1.0)) * 100, 2),
    )


def _peak_day(fp: BehavioralFingerprint) -> str:
    if not any(fp.daily_activity):
        return "n/a"
    return DAY_NAMES[max(range(7), key=lambda i: fp.daily_activity[i])]
