"""cdrlink analysis engine.

Runs every analysis component concurrently over one immutable record
snapshot and joins the results into an AnalysisReport.

Components:
  graph               — build_graph (plus centrality once the pool drains)
  chains              — detect_chains
  fingerprints        — compute_fingerprints
  correlation         — correlate_devices
  copresence          — detect_copresence
  cross_source_links  — analyze_cross_source_links
  location_summaries  — summarize_locations

Usage:
    from config.settings import AnalysisConfig
    from cdrlink.engine import run_analysis

    report = run_analysis(records, AnalysisConfig(chain_max_gap_minutes=30))
"""

from __future__ import annotations

import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from config.settings import AnalysisConfig
from cdrlink.analysis.chain_detector import detect_chains
from cdrlink.analysis.contact_graph import build_graph, compute_centrality
from cdrlink.analysis.copresence import detect_copresence
from cdrlink.analysis.cross_source import analyze_cross_source_links
from cdrlink.analysis.device_correlation import correlate_devices
from cdrlink.analysis.fingerprint import compute_fingerprints
from cdrlink.analysis.location_summary import summarize_locations
from cdrlink.models.records import InteractionRecord
from cdrlink.models.report import AnalysisReport, ComponentRecord, ComponentStatus
from cdrlink.utils.cancellation import AnalysisCancelled, CancellationToken, checkpoint
from cdrlink.utils.logging_utils import get_run_logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _make_run_id(label: str) -> str:
    """Generate a sortable run ID from UTC timestamp and a label slug.

    Args:
        label: Free-form run label (case name, input file stem).

    Returns:
        Run ID string in the form ``YYYYMMDD_HHMMSS_<slug>``.
    """
    timestamp = _utcnow().strftime("%Y%m%d_%H%M%S")
    slug = re.sub(r"[^a-z0-9]+", "_", label.lower())[:40].strip("_") or "run"
    return f"{timestamp}_{slug}"


def group_by_source(records: Iterable[InteractionRecord]) -> Dict[str, List[InteractionRecord]]:
    """Group records by source_id, preserving first-seen source order."""
    grouped: Dict[str, List[InteractionRecord]] = defaultdict(list)
    for record in records:
        grouped[record.source_id].append(record)
    return dict(grouped)


def _run_component(fn: Callable[[], object], record: ComponentRecord) -> object:
    record.start_time = _utcnow()
    try:
        return fn()
    finally:
        record.end_time = _utcnow()


def run_analysis(
    records: Iterable[InteractionRecord],
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    records_by_source: Optional[Mapping[str, Sequence[InteractionRecord]]] = None,
    run_label: str = "cdr",
) -> AnalysisReport:
    """Execute a full batch analysis.

    Each component runs in its own worker over the same snapshot. A component
    that raises is logged and recorded in ``report.errors`` while the others
    complete. Cancellation is not a component failure: once any component
    observes the token, the whole run is abandoned.

    Args:
        records: Normalized interaction records.
        config: Analysis parameters; defaults to AnalysisConfig().
        cancel_token: Optional token shared by every component.
        records_by_source: Records grouped by source for cross-source links;
            defaults to grouping ``records`` by source_id.
        run_label: Label used to build the run id.

    Returns:
        AnalysisReport with every successful component's output.

    Raises:
        AnalysisCancelled: If ``cancel_token`` is set before or during the run.
    """
    config = config or AnalysisConfig()
    snapshot = tuple(records)
    if records_by_source is None:
        records_by_source = group_by_source(snapshot)

    run_id = _make_run_id(run_label)
    log = get_run_logger(__name__, run_id)
    report = AnalysisReport(run_id=run_id, record_count=len(snapshot), start_time=_utcnow())
    log.info(
        "Engine: starting analysis of %d records from %d sources (workers=%d)",
        len(snapshot),
        len(records_by_source),
        config.max_workers,
    )

    checkpoint(cancel_token)

    scan = {"cancel_token": cancel_token, "check_interval": config.cancel_check_interval}
    tasks: Dict[str, Callable[[], object]] = {
        "graph": partial(
            build_graph, snapshot, max_records=config.max_records_for_graph, **scan
        ),
        "chains": partial(
            detect_chains,
            snapshot,
            max_gap_minutes=config.chain_max_gap_minutes,
            min_chain_length=config.chain_min_length,
            **scan,
        ),
        "fingerprints": partial(compute_fingerprints, snapshot, **scan),
        "correlation": partial(
            correlate_devices,
            snapshot,
            sim_fallback_to_msisdn=config.sim_fallback_to_msisdn,
            **scan,
        ),
        "copresence": partial(
            detect_copresence,
            snapshot,
            window_seconds=config.copresence_window_seconds,
            min_cluster_size=config.copresence_min_cluster_size,
            **scan,
        ),
        "cross_source_links": partial(analyze_cross_source_links, records_by_source, **scan),
        "location_summaries": partial(summarize_locations, snapshot, **scan),
    }

    cancelled = False
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        future_map = {}
        for name, fn in tasks.items():
            comp = ComponentRecord(component=name, start_time=_utcnow())
            future = executor.submit(_run_component, fn, comp)
            future_map[future] = (name, comp)

        for future in as_completed(future_map):
            name, comp = future_map[future]
            try:
                setattr(report, name, future.result())
                comp.status = ComponentStatus.OK
                log.info("Engine: %s complete (%.2fs)", name, comp.elapsed_seconds)
            except AnalysisCancelled:
                comp.status = ComponentStatus.SKIPPED
                cancelled = True
            except Exception as exc:
                comp.status = ComponentStatus.FAILED
                log.exception("Engine: %s raised unhandled exception: %s", name, exc)
                report.add_error(f"{name} failed with exception: {exc}")
            report.component_log.append(comp)

    if cancelled:
        log.warning("Engine: run cancelled — discarding partial results")
        raise AnalysisCancelled(f"analysis run {run_id} cancelled")

    report.component_log.sort(key=lambda c: list(tasks).index(c.component))

    if report.graph is not None:
        if report.graph.trimmed:
            report.add_warning(
                f"Contact graph truncated to the first {report.graph.record_count} "
                f"of {len(snapshot)} records"
            )
        comp = ComponentRecord(component="centrality", start_time=_utcnow())
        try:
            report.centrality = compute_centrality(
                report.graph,
                hub_top_n=config.centrality_hub_top_n,
                broker_ratio_threshold=config.centrality_broker_ratio_threshold,
                pagerank_max_iter=config.centrality_pagerank_max_iter,
            )
        except Exception as exc:
            comp.status = ComponentStatus.FAILED
            log.exception("Engine: centrality raised unhandled exception: %s", exc)
            report.add_error(f"centrality failed with exception: {exc}")
        comp.end_time = _utcnow()
        report.component_log.append(comp)

    _finalise(report, log)
    return report


def _finalise(report: AnalysisReport, log) -> None:
    """Record the run end time and emit a summary log line."""
    report.end_time = _utcnow()
    elapsed = (report.end_time - report.start_time).total_seconds() if report.start_time else 0.0
    completed = [c.component for c in report.component_log if c.status == ComponentStatus.OK]
    log.info(
        "Engine: run complete in %.1fs | components=%d | warnings=%d | errors=%d",
        elapsed,
        len(completed),
        len(report.warnings),
        len(report.errors),
    )
    for err in report.errors:
        log.error("Engine error: %s", err)
