"""cdrlink analysis package.

Pure analytical functions only — no I/O, no side effects.
All functions operate on typed models from cdrlink.models.
"""

from cdrlink.analysis.chain_detector import detect_chains
from cdrlink.analysis.contact_graph import build_graph, compute_centrality
from cdrlink.analysis.copresence import detect_copresence
from cdrlink.analysis.cross_source import analyze_cross_source_links
from cdrlink.analysis.device_correlation import correlate_devices
from cdrlink.analysis.fingerprint import compare_fingerprints, compute_fingerprints
from cdrlink.analysis.location_summary import summarize_locations

__all__ = [
    "build_graph",
    "compute_centrality",
    "detect_chains",
    "compute_fingerprints",
    "compare_fingerprints",
    "correlate_devices",
    "detect_copresence",
    "analyze_cross_source_links",
    "summarize_locations",
]
