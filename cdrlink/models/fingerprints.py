"""Behavioral fingerprint data models for cdrlink.

Defines the per-identifier activity profile produced by compute_fingerprints()
and the pairwise comparison produced by compare_fingerprints().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

# Monday-first, matching datetime.weekday()
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass
class LocationVisit:
    """A location and how often an identifier was observed there."""

    location_id: str
    count: int
    address: Optional[str] = None


@dataclass
class BehavioralFingerprint:
    """Temporal and directional activity profile of one identifier."""

    identifier: str
    total_interactions: int = 0
    hourly_activity: List[int] = field(default_factory=lambda: [0] * 24)
    daily_activity: List[int] = field(default_factory=lambda: [0] * 7)
    avg_call_duration_seconds: float = 0.0
    call_directionality: str = "n/a"     # "outgoing", "incoming", "balanced", "n/a"
    sms_directionality: str = "n/a"
    dominant_time_slot: str = "n/a"      # "morning", "afternoon", "evening", "night", "varied", "n/a"
    primary_activity_focus: str = "n/a"  # "call", "sms", "mixed", "n/a"
    top_locations: List[LocationVisit] = field(default_factory=list)


@dataclass
class SimilarityComponent:
    """One weighted dimension of a fingerprint comparison."""

    metric: str
    score: float
    weight: float
    value_a: str = ""
    value_b: str = ""


@dataclass
class FingerprintComparison:
    """Heuristic similarity between two fingerprints (score 0-100)."""

    identifier_a: str
    identifier_b: str
    components: List[SimilarityComponent] = field(default_factory=list)
    low_volume_adjusted: bool = False
    overall_score: float = 0.0
