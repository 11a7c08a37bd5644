"""cdrlink configuration package."""

from config.defaults import (
    CHAIN_MAX_GAP_MINUTES,
    CHAIN_MIN_LENGTH,
    COPRESENCE_MIN_CLUSTER_SIZE,
    COPRESENCE_WINDOW_SECONDS,
    DEFAULT_LOG_LEVEL,
    MAX_RECORDS_FOR_GRAPH,
    MAX_WORKERS,
)
from config.settings import AnalysisConfig, SimilarityWeights

__all__ = [
    "AnalysisConfig",
    "SimilarityWeights",
    "MAX_RECORDS_FOR_GRAPH",
    "CHAIN_MAX_GAP_MINUTES",
    "CHAIN_MIN_LENGTH",
    "COPRESENCE_WINDOW_SECONDS",
    "COPRESENCE_MIN_CLUSTER_SIZE",
    "MAX_WORKERS",
    "DEFAULT_LOG_LEVEL",
]
