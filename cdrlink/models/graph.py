"""Contact graph data models for cdrlink.

Defines typed structures for identifier nodes, directed interaction edges,
centrality metrics, and the overall contact graph produced by build_graph().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from cdrlink.models.records import InteractionKind


@dataclass
class GraphNode:
    """A single identifier (MSISDN) in the contact graph."""

    identifier: str
    interaction_count: int = 0
    outgoing_calls: int = 0
    incoming_calls: int = 0
    outgoing_sms: int = 0
    incoming_sms: int = 0
    total_call_duration: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    source_ids: List[str] = field(default_factory=list)
    location_ids: List[str] = field(default_factory=list)
    is_hub: bool = False
    is_first_party: bool = False        # Seen as identifier_a (record owner)
    device_id: Optional[str] = None     # First IMEI seen for a first-party node


@dataclass
class GraphEdge:
    """Aggregated interactions of one kind from source to target."""

    source: str
    target: str
    kind: InteractionKind
    count: int = 0
    duration_sum: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    source_ids: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str, InteractionKind]:
        return (self.source, self.target, self.kind)

    @property
    def label(self) -> str:
        """Short display label, e.g. "3 call_out, 7 min"."""
        return f"{self.count} {self.kind.value}, {round(self.duration_sum / 60)} min"


@dataclass
class CentralityResult:
    """Centrality metrics computed for a single identifier."""

    identifier: str
    degree: float
    betweenness: float
    pagerank: float
    role: str   # "Hub", "Broker", or "Peripheral"


@dataclass
class ContactGraph:
    """Complete contact graph with per-node and per-edge statistics."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    trimmed: bool = False
    record_count: int = 0       # Records considered after trimming
    source_count: int = 0

    node_by_id: Dict[str, GraphNode] = field(default_factory=dict)

    def get_hubs(self) -> List[GraphNode]:
        """Return all nodes flagged as hubs."""
        return [n for n in self.nodes if n.is_hub]

    def incident_edges(self, identifier: str) -> List[GraphEdge]:
        """Return edges that start or end at ``identifier`` (self-loops once)."""
        return [e for e in self.edges if e.source == identifier or e.target == identifier]

    def to_networkx(self):
        """Build a networkx MultiDiGraph, one parallel edge per interaction kind."""
        import networkx as nx

        G = nx.MultiDiGraph()
        for node in self.nodes:
            G.add_node(
                node.identifier,
                interaction_count=node.interaction_count,
                is_hub=node.is_hub,
            )
        for edge in self.edges:
            G.add_edge(
                edge.source,
                edge.target,
                key=edge.kind.value,
                count=edge.count,
                duration_sum=edge.duration_sum,
            )
        return G
