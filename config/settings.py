"""cdrlink — AnalysisConfig and environment-based configuration loading.

All runtime configuration flows through AnalysisConfig. Analysis functions take
plain keyword parameters; the engine reads them from this object.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from config.defaults import (
    CANCEL_CHECK_INTERVAL,
    CENTRALITY_BROKER_RATIO_THRESHOLD,
    CENTRALITY_HUB_TOP_N,
    CENTRALITY_PAGERANK_MAX_ITER,
    CHAIN_MAX_GAP_MINUTES,
    CHAIN_MIN_LENGTH,
    COPRESENCE_MIN_CLUSTER_SIZE,
    COPRESENCE_WINDOW_SECONDS,
    DEFAULT_LOG_LEVEL,
    MAX_RECORDS_FOR_GRAPH,
    MAX_WORKERS,
    OUTPUT_ROOT,
    SIMILARITY_WEIGHT_CALL_DIRECTION,
    SIMILARITY_WEIGHT_DAILY,
    SIMILARITY_WEIGHT_DURATION,
    SIMILARITY_WEIGHT_FOCUS,
    SIMILARITY_WEIGHT_HOURLY,
    SIMILARITY_WEIGHT_LOCATIONS,
    SIMILARITY_WEIGHT_SMS_DIRECTION,
    SIMILARITY_WEIGHT_TIME_SLOT,
)

# Load .env file if present; silently skip if missing
load_dotenv()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass
class SimilarityWeights:
    """Configurable weights for behavioral fingerprint similarity scoring."""

    hourly: float = SIMILARITY_WEIGHT_HOURLY
    daily: float = SIMILARITY_WEIGHT_DAILY
    duration: float = SIMILARITY_WEIGHT_DURATION
    focus: float = SIMILARITY_WEIGHT_FOCUS
    time_slot: float = SIMILARITY_WEIGHT_TIME_SLOT
    locations: float = SIMILARITY_WEIGHT_LOCATIONS
    call_direction: float = SIMILARITY_WEIGHT_CALL_DIRECTION
    sms_direction: float = SIMILARITY_WEIGHT_SMS_DIRECTION

    def __post_init__(self) -> None:
        total = (
            self.hourly + self.daily + self.duration + self.focus
            + self.time_slot + self.locations + self.call_direction + self.sms_direction
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"SimilarityWeights must sum to 1.0, got {total:.4f}")


@dataclass
class AnalysisConfig:
    """Single configuration object for a full analysis run.

    Every parameter consumed by run_analysis() lives here. Invalid values are
    rejected at construction time; nothing is silently clamped.
    """

    # ── Contact graph ─────────────────────────────────────────────────────────
    max_records_for_graph: int = MAX_RECORDS_FOR_GRAPH
    centrality_hub_top_n: int = CENTRALITY_HUB_TOP_N
    centrality_broker_ratio_threshold: float = CENTRALITY_BROKER_RATIO_THRESHOLD
    centrality_pagerank_max_iter: int = CENTRALITY_PAGERANK_MAX_ITER

    # ── Conversation chains ───────────────────────────────────────────────────
    chain_max_gap_minutes: float = CHAIN_MAX_GAP_MINUTES
    chain_min_length: int = CHAIN_MIN_LENGTH

    # ── Co-presence ───────────────────────────────────────────────────────────
    copresence_window_seconds: int = COPRESENCE_WINDOW_SECONDS
    copresence_min_cluster_size: int = COPRESENCE_MIN_CLUSTER_SIZE

    # ── Device correlation ────────────────────────────────────────────────────
    # Use the MSISDN as SIM identity when a record carries no IMSI
    sim_fallback_to_msisdn: bool = False

    # ── Execution ─────────────────────────────────────────────────────────────
    max_workers: int = field(
        default_factory=lambda: _env_int("CDRLINK_MAX_WORKERS", MAX_WORKERS)
    )
    cancel_check_interval: int = CANCEL_CHECK_INTERVAL

    # ── Output and logging ────────────────────────────────────────────────────
    output_root: str = field(
        default_factory=lambda: os.getenv("CDRLINK_OUTPUT_ROOT", OUTPUT_ROOT)
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("CDRLINK_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    )

    def __post_init__(self) -> None:
        if self.max_records_for_graph < 1:
            raise ValueError(
                f"max_records_for_graph must be >= 1, got {self.max_records_for_graph}"
            )
        if self.chain_max_gap_minutes < 0:
            raise ValueError(
                f"chain_max_gap_minutes must be >= 0, got {self.chain_max_gap_minutes}"
            )
        if self.chain_min_length < 2:
            raise ValueError(f"chain_min_length must be >= 2, got {self.chain_min_length}")
        if self.copresence_window_seconds <= 0:
            raise ValueError(
                f"copresence_window_seconds must be > 0, got {self.copresence_window_seconds}"
            )
        if self.copresence_min_cluster_size < 2:
            raise ValueError(
                "copresence_min_cluster_size must be >= 2, "
                f"got {self.copresence_min_cluster_size}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.cancel_check_interval < 1:
            raise ValueError(
                f"cancel_check_interval must be >= 1, got {self.cancel_check_interval}"
            )
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            )
