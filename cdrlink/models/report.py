"""Analysis run data models for cdrlink.

Defines AnalysisReport (joined output of all components for one run) and
ComponentRecord (per-component timing log).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from cdrlink.models.chains import ConversationChain
from cdrlink.models.copresence import CoPresenceEvent, LocationSummary
from cdrlink.models.devices import CorrelationResult
from cdrlink.models.fingerprints import BehavioralFingerprint
from cdrlink.models.graph import CentralityResult, ContactGraph
from cdrlink.models.links import CrossSourceLinkResult


class ComponentStatus:
    """Status codes used in ComponentRecord.status."""

    OK = "OK"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class ComponentRecord:
    """Timing and status record for a single component execution."""

    component: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = ComponentStatus.OK

    @property
    def elapsed_seconds(self) -> float:
        """Compute elapsed time in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class AnalysisReport:
    """Joined results of one full batch analysis.

    A component that failed leaves its field None and adds an entry to
    ``errors``; the remaining fields are still populated.
    """

    run_id: str
    record_count: int = 0
    graph: Optional[ContactGraph] = None
    chains: Optional[List[ConversationChain]] = None
    fingerprints: Optional[List[BehavioralFingerprint]] = None
    correlation: Optional[CorrelationResult] = None
    copresence: Optional[List[CoPresenceEvent]] = None
    cross_source_links: Optional[List[CrossSourceLinkResult]] = None
    location_summaries: Optional[List[LocationSummary]] = None
    centrality: Optional[List[CentralityResult]] = None

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    component_log: List[ComponentRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def add_warning(self, warning: str) -> None:
        """Append a warning to the run warning list."""
        self.warnings.append(warning)

    def add_error(self, error: str) -> None:
        """Append an error to the run error list."""
        self.errors.append(error)
