"""Cross-source link analysis data models for cdrlink."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SourceDetail:
    """What a common identifier did inside one source."""

    source_id: str
    contacted: List[str] = field(default_factory=list)   # Counterparts when identifier_a
    callers: List[str] = field(default_factory=list)     # Initiators when identifier_b
    location_ids: List[str] = field(default_factory=list)
    device_ids: List[str] = field(default_factory=list)
    addresses: List[str] = field(default_factory=list)
    record_count: int = 0


@dataclass
class SourceInteraction:
    """Role tallies of an identifier within one source."""

    source_id: str
    as_first: int = 0    # Occurrences as identifier_a
    as_second: int = 0   # Occurrences as identifier_b

    @property
    def total(self) -> int:
        return self.as_first + self.as_second


@dataclass
class CrossSourceLinkResult:
    """An identifier that is common to, or notably linked across, sources."""

    identifier: str
    classification: str                  # "common" or "notable"
    sources: List[SourceInteraction] = field(default_factory=list)
    total_occurrences: int = 0
    details: Optional[List[SourceDetail]] = None   # Populated for common identifiers only

    @property
    def is_common(self) -> bool:
        """True when the identifier appears in every analyzed source."""
        return self.classification == "common"
