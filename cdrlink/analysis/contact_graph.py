"""Contact graph construction and analysis for cdrlink.

Aggregates interaction records into identifier nodes and (source, target,
kind) edges with per-node and per-edge statistics, flags hub identifiers, and
computes centrality metrics (degree, betweenness, PageRank) over the result.

All NetworkX calls guard against empty graphs before computing centrality
or PageRank, since both raise on empty graphs.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

from config.defaults import (
    CANCEL_CHECK_INTERVAL,
    CENTRALITY_BROKER_RATIO_THRESHOLD,
    CENTRALITY_HUB_TOP_N,
    CENTRALITY_PAGERANK_MAX_ITER,
    HUB_MIN_COUNT,
    HUB_VOLUME_FRACTION,
    MAX_RECORDS_FOR_GRAPH,
)
from cdrlink.models.graph import CentralityResult, ContactGraph, GraphEdge, GraphNode
from cdrlink.models.records import InteractionKind, InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked
from cdrlink.utils.date_utils import to_epoch_seconds

logger = logging.getLogger(__name__)

_EdgeKey = Tuple[str, str, InteractionKind]


def _widen(
    first: Optional[datetime], last: Optional[datetime], ts: Optional[datetime]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Extend a (first, last) seen range to include ``ts``."""
    if ts is None:
        return first, last
    epoch = to_epoch_seconds(ts)
    if first is None or epoch < to_epoch_seconds(first):
        first = ts
    if last is None or epoch > to_epoch_seconds(last):
        last = ts
    return first, last


@dataclass
class _NodeAccumulator:
    identifier: str
    count: int = 0
    outgoing_calls: int = 0
    incoming_calls: int = 0
    outgoing_sms: int = 0
    incoming_sms: int = 0
    call_duration: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    sources: Set[str] = field(default_factory=set)
    locations: Set[str] = field(default_factory=set)
    is_first_party: bool = False
    device_id: Optional[str] = None

    def observe(self, record: InteractionRecord) -> None:
        self.count += 1
        if record.kind.is_call:
            self.call_duration += record.duration_seconds
        if record.source_id:
            self.sources.add(record.source_id)
        self.first_seen, self.last_seen = _widen(self.first_seen, self.last_seen, record.timestamp)

    def count_direction(self, kind: InteractionKind, initiated: bool) -> None:
        """Update directional counters for one side of an interaction.

        ``initiated`` is True for identifier_a. For incoming kinds the roles
        flip: identifier_b is the party that placed the call or sent the SMS.
        """
        if kind.is_incoming:
            initiated = not initiated
        elif not kind.is_outgoing:
            return
        if kind.is_call:
            if initiated:
                self.outgoing_calls += 1
            else:
                self.incoming_calls += 1
        elif initiated:
            self.outgoing_sms += 1
        else:
            self.incoming_sms += 1


@dataclass
class _EdgeAccumulator:
    count: int = 0
    duration: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    sources: Set[str] = field(default_factory=set)


def build_graph(
    records: Iterable[InteractionRecord],
    max_records: int = MAX_RECORDS_FOR_GRAPH,
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> ContactGraph:
    """Build a contact graph from interaction records.

    Inputs longer than ``max_records`` are truncated to their first
    ``max_records`` records (original order) and the result is flagged
    ``trimmed``. Records without identifier_a are skipped. Presence records
    without a counterpart count toward their owner's total but produce no edge.

    Args:
        records: Interaction records in their original order.
        max_records: Record cap for cost control.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        ContactGraph with sorted nodes and edges.

    Raises:
        ValueError: If ``max_records`` is below 1.
        AnalysisCancelled: If ``cancel_token`` is set during the scan.
    """
    if max_records < 1:
        raise ValueError(f"max_records must be >= 1, got {max_records}")

    records = list(records)
    trimmed = len(records) > max_records
    if trimmed:
        logger.warning(
            "Contact graph: %d records exceed cap of %d — truncating",
            len(records),
            max_records,
        )
        records = records[:max_records]

    nodes: Dict[str, _NodeAccumulator] = {}
    edges: Dict[_EdgeKey, _EdgeAccumulator] = {}
    sources_seen: Set[str] = set()
    skipped = 0

    def _node(identifier: str) -> _NodeAccumulator:
        acc = nodes.get(identifier)
        if acc is None:
            acc = nodes[identifier] = _NodeAccumulator(identifier)
        return acc

    for record in checked(records, cancel_token, check_interval):
        a = record.identifier_a
        if not a:
            skipped += 1
            continue
        sources_seen.add(record.source_id)

        node_a = _node(a)
        node_a.observe(record)
        node_a.count_direction(record.kind, initiated=True)
        node_a.is_first_party = True
        if record.location_id:
            node_a.locations.add(record.location_id)
        if node_a.device_id is None and record.device_id:
            node_a.device_id = record.device_id

        b = record.identifier_b
        if not b:
            continue
        if b != a:
            node_b = _node(b)
            node_b.observe(record)
            node_b.count_direction(record.kind, initiated=False)

        edge = edges.get((a, b, record.kind))
        if edge is None:
            edge = edges[(a, b, record.kind)] = _EdgeAccumulator()
        edge.count += 1
        edge.duration += record.duration_seconds
        if record.source_id:
            edge.sources.add(record.source_id)
        edge.first_seen, edge.last_seen = _widen(edge.first_seen, edge.last_seen, record.timestamp)

    if skipped:
        logger.debug("Contact graph: skipped %d records without identifier_a", skipped)

    # Per-source volume counts only the records that reached the graph
    used = len(records) - skipped
    source_count = max(len(sources_seen), 1)
    hub_threshold = max(HUB_MIN_COUNT, used / source_count * HUB_VOLUME_FRACTION)

    graph_nodes = [
        GraphNode(
            identifier=acc.identifier,
            interaction_count=acc.count,
            outgoing_calls=acc.outgoing_calls,
            incoming_calls=acc.incoming_calls,
            outgoing_sms=acc.outgoing_sms,
            incoming_sms=acc.incoming_sms,
            total_call_duration=acc.call_duration,
            first_seen=acc.first_seen,
            last_seen=acc.last_seen,
            source_ids=sorted(acc.sources),
            location_ids=sorted(acc.locations),
            is_hub=len(acc.sources) > 1 or acc.count > hub_threshold,
            is_first_party=acc.is_first_party,
            device_id=acc.device_id,
        )
        for acc in nodes.values()
    ]
    graph_nodes.sort(key=lambda n: (-n.interaction_count, n.identifier))

    graph_edges = [
        GraphEdge(
            source=source,
            target=target,
            kind=kind,
            count=acc.count,
            duration_sum=acc.duration,
            first_seen=acc.first_seen,
            last_seen=acc.last_seen,
            source_ids=sorted(acc.sources),
        )
        for (source, target, kind), acc in edges.items()
    ]
    graph_edges.sort(key=lambda e: (e.source, e.target, e.kind.value))

    logger.info(
        "Contact graph: %d nodes, %d edges from %d records (trimmed=%s)",
        len(graph_nodes),
        len(graph_edges),
        len(records),
        trimmed,
    )

    return ContactGraph(
        nodes=graph_nodes,
        edges=graph_edges,
        trimmed=trimmed,
        record_count=len(records),
        source_count=len(sources_seen),
        node_by_id={n.identifier: n for n in graph_nodes},
    )


def compute_centrality(
    graph: ContactGraph,
    hub_top_n: int = CENTRALITY_HUB_TOP_N,
    broker_ratio_threshold: float = CENTRALITY_BROKER_RATIO_THRESHOLD,
    pagerank_max_iter: int = CENTRALITY_PAGERANK_MAX_ITER,
) -> List[CentralityResult]:
    """Compute centrality metrics over the undirected, count-weighted contact graph.

    Edges of every kind and direction between two identifiers are merged into a
    single weighted link. Self-loops and identifiers without counterparts are
    ignored.

    Args:
        graph: ContactGraph from build_graph().
        hub_top_n: Number of top-degree identifiers to classify as Hub.
        broker_ratio_threshold: Betweenness/degree ratio threshold for Broker classification.
        pagerank_max_iter: Maximum iterations for PageRank computation.

    Returns:
        CentralityResult list sorted by PageRank descending, then identifier.
    """
    G = nx.Graph()
    for edge in graph.edges:
        if edge.source == edge.target:
            continue
        if G.has_edge(edge.source, edge.target):
            G[edge.source][edge.target]["weight"] += edge.count
        else:
            G.add_edge(edge.source, edge.target, weight=edge.count)

    if G.number_of_nodes() == 0:
        logger.info("Centrality: no linked identifiers — returning empty result")
        return []

    degree_centrality = nx.degree_centrality(G)

    try:
        betweenness = nx.betweenness_centrality(G, weight="weight", normalized=True)
    except Exception as exc:
        logger.warning("Betweenness centrality failed: %s — using zeros", exc)
        betweenness = {n: 0.0 for n in G.nodes()}

    try:
        pagerank = nx.pagerank(G, weight="weight", max_iter=pagerank_max_iter)
    except Exception as exc:
        logger.warning("PageRank failed: %s — using degree centrality", exc)
        pagerank = degree_centrality

    sorted_by_degree = sorted(degree_centrality.items(), key=lambda x: (-x[1], x[0]))
    hub_names = {name for name, _ in sorted_by_degree[:hub_top_n]}

    def _classify_role(name: str) -> str:
        if name in hub_names:
            return "Hub"
        deg = degree_centrality.get(name, 0.0)
        bet = betweenness.get(name, 0.0)
        if deg > 0 and (bet / deg) >= broker_ratio_threshold:
            return "Broker"
        return "Peripheral"

    results = [
        CentralityResult(
            identifier=name,
            degree=round(degree_centrality.get(name, 0.0), 6),
            betweenness=round(betweenness.get(name, 0.0), 6),
            pagerank=round(pagerank.get(name, 0.0), 8),
            role=_classify_role(name),
        )
        for name in G.nodes()
    ]
    results.sort(key=lambda r: (-r.pagerank, r.identifier))
    return results
