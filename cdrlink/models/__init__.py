"""cdrlink data models package.

All component inputs and outputs are defined here as typed dataclasses.
Never return raw dicts from analysis code; always use the typed models.
"""

from cdrlink.models.chains import ChainEntry, ConversationChain
from cdrlink.models.copresence import CoPresenceEvent, LocationSummary
from cdrlink.models.devices import (
    ChangeEvent,
    ContactedParty,
    CorrelationResult,
    CounterpartLink,
    DeviceLink,
    SimLink,
)
from cdrlink.models.fingerprints import (
    BehavioralFingerprint,
    FingerprintComparison,
    LocationVisit,
    SimilarityComponent,
)
from cdrlink.models.graph import CentralityResult, ContactGraph, GraphEdge, GraphNode
from cdrlink.models.links import CrossSourceLinkResult, SourceDetail, SourceInteraction
from cdrlink.models.records import InteractionKind, InteractionRecord
from cdrlink.models.report import AnalysisReport, ComponentRecord, ComponentStatus

__all__ = [
    # records
    "InteractionKind",
    "InteractionRecord",
    # graph
    "GraphNode",
    "GraphEdge",
    "ContactGraph",
    "CentralityResult",
    # chains
    "ChainEntry",
    "ConversationChain",
    # fingerprints
    "BehavioralFingerprint",
    "LocationVisit",
    "FingerprintComparison",
    "SimilarityComponent",
    # devices
    "CounterpartLink",
    "ChangeEvent",
    "ContactedParty",
    "DeviceLink",
    "SimLink",
    "CorrelationResult",
    # co-presence
    "CoPresenceEvent",
    "LocationSummary",
    # links
    "SourceInteraction",
    "SourceDetail",
    "CrossSourceLinkResult",
    # report
    "AnalysisReport",
    "ComponentRecord",
    "ComponentStatus",
]
