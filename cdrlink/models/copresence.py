"""Co-presence and location summary data models for cdrlink."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass
class CoPresenceEvent:
    """Distinct identifiers observed at one location within one time window."""

    location_id: str
    representative_time: datetime     # Mean of contributing record timestamps
    participants: List[str] = field(default_factory=list)   # Sorted, distinct
    record_count: int = 0
    time_bucket: int = 0
    address: Optional[str] = None
    record_ids: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, int, Tuple[str, ...]]:
        """Dedup key: (location_id, time bucket, sorted participants)."""
        return (self.location_id, self.time_bucket, tuple(self.participants))


@dataclass
class LocationSummary:
    """Activity observed at a single location (cell tower)."""

    location_id: str
    record_count: int = 0
    total_call_duration: int = 0
    identifiers: List[str] = field(default_factory=list)
    hourly_activity: List[int] = field(default_factory=lambda: [0] * 24)
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    address: Optional[str] = None
