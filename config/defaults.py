"""cdrlink — All default threshold values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via AnalysisConfig at runtime.
"""

# ── Contact graph ─────────────────────────────────────────────────────────────
# Record cap for graph construction; larger inputs are truncated and flagged
MAX_RECORDS_FOR_GRAPH: int = 15000

# A node is a hub when its count exceeds max(HUB_MIN_COUNT, per-source volume * HUB_VOLUME_FRACTION)
HUB_MIN_COUNT: int = 10
HUB_VOLUME_FRACTION: float = 0.05

# Top-N nodes by degree centrality classified as "Hub" in centrality ranking
CENTRALITY_HUB_TOP_N: int = 5

# Betweenness-to-degree ratio threshold for "Broker" classification
CENTRALITY_BROKER_RATIO_THRESHOLD: float = 1.5

# Maximum PageRank iterations
CENTRALITY_PAGERANK_MAX_ITER: int = 200

# ── Conversation chains ───────────────────────────────────────────────────────
# Maximum minutes between consecutive interactions of one chain (inclusive)
CHAIN_MAX_GAP_MINUTES: float = 60.0

# Minimum number of interactions for a chain to be reported
CHAIN_MIN_LENGTH: int = 2

# ── Behavioral fingerprints ───────────────────────────────────────────────────
# outgoing / total above this ratio is "outgoing"
DIRECTIONALITY_OUTGOING_RATIO: float = 0.7

# outgoing / total below this ratio is "incoming"
DIRECTIONALITY_INCOMING_RATIO: float = 0.3

# Time-of-day slot boundaries (start hour inclusive, end hour exclusive)
MORNING_HOURS: tuple = (6, 12)
AFTERNOON_HOURS: tuple = (12, 18)
EVENING_HOURS: tuple = (18, 22)

# Number of most-visited locations kept per fingerprint
TOP_LOCATIONS: int = 3

# ── Fingerprint similarity ────────────────────────────────────────────────────
# Component weights for compare_fingerprints (must sum to 1.0)
SIMILARITY_WEIGHT_HOURLY: float = 0.25
SIMILARITY_WEIGHT_DAILY: float = 0.15
SIMILARITY_WEIGHT_DURATION: float = 0.10
SIMILARITY_WEIGHT_FOCUS: float = 0.05
SIMILARITY_WEIGHT_TIME_SLOT: float = 0.10
SIMILARITY_WEIGHT_LOCATIONS: float = 0.15
SIMILARITY_WEIGHT_CALL_DIRECTION: float = 0.10
SIMILARITY_WEIGHT_SMS_DIRECTION: float = 0.10

# Fingerprints with fewer interactions than this get their score damped
SIMILARITY_MIN_INTERACTIONS: int = 10

# Multiplier applied to the overall score when either side is below the minimum
SIMILARITY_LOW_VOLUME_FACTOR: float = 0.7

# Partial credit when one dominant time slot is "varied"
SIMILARITY_VARIED_SLOT_CREDIT: float = 0.3

# ── Co-presence ───────────────────────────────────────────────────────────────
# Window after an anchor record within which other records are co-present (inclusive)
COPRESENCE_WINDOW_SECONDS: int = 300

# Minimum distinct identifiers for a co-presence event
COPRESENCE_MIN_CLUSTER_SIZE: int = 2

# ── Execution ─────────────────────────────────────────────────────────────────
# Worker threads used by run_analysis to execute components concurrently
MAX_WORKERS: int = 6

# Records processed between cancellation-token checks inside component scans
CANCEL_CHECK_INTERVAL: int = 2000

# ── Output paths ──────────────────────────────────────────────────────────────
# Root directory for CLI analysis outputs
OUTPUT_ROOT: str = "outputs/runs"

# ── Logging ───────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
