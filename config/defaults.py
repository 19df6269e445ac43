"""ReportFusion: all default threshold values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via ClusteringConfig at runtime.
"""

# ── Clustering configuration ───────────────────────────────────────────────────
# Geographic decay radius and hard cutoff for the geographic component (km)
MAX_DISTANCE_KM: float = 5.0

# DBSCAN minPts and minimum number of reports in any cluster
MIN_SUBMISSIONS: int = 2

# Overall-similarity cutoff for neighbourhood membership and cluster assignment
SEMANTIC_SIMILARITY_THRESHOLD: float = 0.6

# Recency window for the temporal component (1 week)
TEMPORAL_WINDOW_HOURS: float = 168.0

# ── Four-way clustering weights (must sum to 1.0) ──────────────────────────────
CATEGORY_WEIGHT: float = 0.2
LOCATION_WEIGHT: float = 0.4
CONTENT_WEIGHT: float = 0.3
TIME_WEIGHT: float = 0.1

# ── Five-way similarity weights used for the overall score (sum to 1.0) ────────
SIMILARITY_WEIGHT_SEMANTIC: float = 0.40
SIMILARITY_WEIGHT_GEOGRAPHIC: float = 0.30
SIMILARITY_WEIGHT_TEMPORAL: float = 0.10
SIMILARITY_WEIGHT_CATEGORICAL: float = 0.15
SIMILARITY_WEIGHT_SEVERITY: float = 0.05

# ── Semantic sub-score blend ───────────────────────────────────────────────────
SEMANTIC_KEYWORD_WEIGHT: float = 0.3
SEMANTIC_COSINE_WEIGHT: float = 0.4
SEMANTIC_LENGTH_WEIGHT: float = 0.1
SEMANTIC_ENTITY_WEIGHT: float = 0.2

# ── Categorical / severity neutral values ─────────────────────────────────────
# Score returned when either side lacks a category or severity
NEUTRAL_COMPONENT_SCORE: float = 0.5

# Score for two distinct but related categories
RELATED_CATEGORY_SCORE: float = 0.3

# ── Cluster aggregation ────────────────────────────────────────────────────────
# Urgency assumed for reports without an upstream urgency signal
DEFAULT_REPORT_URGENCY: float = 0.5

# Upper bound of the member-count bonus added to cluster urgency
URGENCY_COUNT_BONUS_CAP: float = 0.3

# Upper bound of the member-count share of cluster impact
IMPACT_COUNT_CAP: float = 0.5

# Member count at which the count score saturates
PRIORITY_COUNT_SATURATION: int = 10

# Days over which the recency score decays to zero
PRIORITY_RECENCY_DAYS: float = 30.0

# Priority formula weights (urgency, impact, count, recency)
PRIORITY_URGENCY_WEIGHT: float = 0.4
PRIORITY_IMPACT_WEIGHT: float = 0.3
PRIORITY_COUNT_WEIGHT: float = 0.2
PRIORITY_RECENCY_WEIGHT: float = 0.1

# Minimum members before a trend direction other than "stable" is reported
TREND_MIN_REPORTS: int = 4

# Ratio of late-half to early-half arrivals that counts as a trend change
TREND_CHANGE_RATIO: float = 1.5

# Related clusters: centroid distance cutoff as a multiple of MAX_DISTANCE_KM
RELATED_CLUSTER_DISTANCE_FACTOR: float = 2.0

# ── Ranking bands ──────────────────────────────────────────────────────────────
URGENCY_CRITICAL_THRESHOLD: float = 0.8
URGENCY_HIGH_THRESHOLD: float = 0.6
URGENCY_MEDIUM_THRESHOLD: float = 0.4

IMPACT_HIGH_THRESHOLD: float = 0.8
IMPACT_MEDIUM_THRESHOLD: float = 0.6
IMPACT_LOW_THRESHOLD: float = 0.4

# ── Incremental maintenance ───────────────────────────────────────────────────
# "first_match" takes the first qualifying cluster in order; "best_match" the top scorer
ASSIGNMENT_POLICY: str = "first_match"
# Whether new reports may also join clusters opened earlier in the same update
JOIN_NEW_CLUSTERS: bool = False

# ── Concurrency ───────────────────────────────────────────────────────────────
# Worker threads for the pairwise similarity matrix
MATRIX_MAX_WORKERS: int = 4

# Batches smaller than this are scored on the calling thread
MATRIX_PARALLEL_MIN_REPORTS: int = 64

# ── Output paths ──────────────────────────────────────────────────────────────
OUTPUT_ROOT: str = "outputs/clustering"

# ── Logging ────────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
