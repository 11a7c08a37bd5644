"""cdrlink — Link analysis over telecom call detail records.

Public API surface:
    - AnalysisConfig: Runtime configuration
    - InteractionRecord: Normalized input record
    - build_graph, detect_chains, compute_fingerprints, correlate_devices,
      detect_copresence, analyze_cross_source_links: Analysis components
    - run_analysis: Runs every component concurrently into an AnalysisReport
"""

__version__ = "1.0.0"
__author__ = "cdrlink Contributors"

from config.settings import AnalysisConfig
from cdrlink.analysis import (
    analyze_cross_source_links,
    build_graph,
    compare_fingerprints,
    compute_centrality,
    compute_fingerprints,
    correlate_devices,
    detect_chains,
    detect_copresence,
    summarize_locations,
)
from cdrlink.engine import run_analysis
from cdrlink.models.records import InteractionKind, InteractionRecord
from cdrlink.utils.cancellation import AnalysisCancelled, CancellationToken

__all__ = [
    "__version__",
    "AnalysisConfig",
    "InteractionKind",
    "InteractionRecord",
    "AnalysisCancelled",
    "CancellationToken",
    "build_graph",
    "compute_centrality",
    "detect_chains",
    "compute_fingerprints",
    "compare_fingerprints",
    "correlate_devices",
    "detect_copresence",
    "analyze_cross_source_links",
    "summarize_locations",
    "run_analysis",
]
