"""Conversation chain data models for cdrlink."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from cdrlink.models.records import InteractionKind


@dataclass
class ChainEntry:
    """One interaction inside a conversation chain."""

    caller: str
    receiver: str
    timestamp: datetime
    duration_seconds: int
    kind: InteractionKind
    record_id: Optional[str] = None
    address: Optional[str] = None
    gap_to_next_minutes: Optional[float] = None   # None on the last entry


@dataclass
class ConversationChain:
    """A time-bounded back-and-forth sequence between one unordered pair."""

    participants: Tuple[str, str]
    entries: List[ChainEntry] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_duration_seconds: int = 0
    timespan_minutes: float = 0.0

    @property
    def depth(self) -> int:
        return len(self.entries)
