"""ReportFusion: ClusteringConfig and environment-based configuration loading.

All runtime configuration flows through ClusteringConfig. No module-level
mutable defaults: every caller builds (or receives) its own config object, so
concurrent callers with different settings never interfere.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from config.defaults import (
    ASSIGNMENT_POLICY,
    CATEGORY_WEIGHT,
    CONTENT_WEIGHT,
    DEFAULT_LOG_LEVEL,
    JOIN_NEW_CLUSTERS,
    LOCATION_WEIGHT,
    MATRIX_MAX_WORKERS,
    MAX_DISTANCE_KM,
    MIN_SUBMISSIONS,
    OUTPUT_ROOT,
    SEMANTIC_SIMILARITY_THRESHOLD,
    SIMILARITY_WEIGHT_CATEGORICAL,
    SIMILARITY_WEIGHT_GEOGRAPHIC,
    SIMILARITY_WEIGHT_SEMANTIC,
    SIMILARITY_WEIGHT_SEVERITY,
    SIMILARITY_WEIGHT_TEMPORAL,
    TEMPORAL_WINDOW_HOURS,
    TIME_WEIGHT,
)

# Load .env file if present; silently skip if missing
load_dotenv()

logger = logging.getLogger(__name__)

_ASSIGNMENT_POLICIES = ("first_match", "best_match")


@dataclass
class SimilarityWeights:
    """Weights for the five similarity components of the overall score.

    Weights are conventionally normalised to 1.0 but need not be; the overall
    score is clamped to [0, 1] either way.
    """

    semantic: float = SIMILARITY_WEIGHT_SEMANTIC
    geographic: float = SIMILARITY_WEIGHT_GEOGRAPHIC
    temporal: float = SIMILARITY_WEIGHT_TEMPORAL
    categorical: float = SIMILARITY_WEIGHT_CATEGORICAL
    severity: float = SIMILARITY_WEIGHT_SEVERITY

    def __post_init__(self) -> None:
        for name in ("semantic", "geographic", "temporal", "categorical", "severity"):
            if getattr(self, name) < 0:
                raise ValueError(f"SimilarityWeights.{name} must be non-negative")
        if abs(self.total - 1.0) > 1e-6:
            logger.debug("SimilarityWeights sum to %.4f, not 1.0", self.total)

    @property
    def total(self) -> float:
        return self.semantic + self.geographic + self.temporal + self.categorical + self.severity

    @classmethod
    def from_config(cls, config: "ClusteringConfig") -> "SimilarityWeights":
        """Map the four-way clustering weights onto the five similarity components.

        content → semantic, location → geographic, time → temporal,
        category → categorical; severity carries no weight in this scheme.
        """
        return cls(
            semantic=config.content_weight,
            geographic=config.location_weight,
            temporal=config.time_weight,
            categorical=config.category_weight,
            severity=0.0,
        )


@dataclass
class ClusteringConfig:
    """Single configuration object threaded through every clustering operation.

    The four ``*_weight`` fields are the coarse clustering weights and must sum
    to 1.0. The overall similarity score uses ``similarity_weights``; use
    ``SimilarityWeights.from_config`` to score with the four-way scheme instead.
    """

    # ── Neighbourhood and decay parameters ─────────────────────────────────────
    max_distance_km: float = MAX_DISTANCE_KM
    min_submissions: int = MIN_SUBMISSIONS
    semantic_similarity_threshold: float = SEMANTIC_SIMILARITY_THRESHOLD
    temporal_window_hours: float = TEMPORAL_WINDOW_HOURS

    # ── Four-way clustering weights ────────────────────────────────────────────
    category_weight: float = CATEGORY_WEIGHT
    location_weight: float = LOCATION_WEIGHT
    content_weight: float = CONTENT_WEIGHT
    time_weight: float = TIME_WEIGHT

    # ── Overall-score weights ──────────────────────────────────────────────────
    similarity_weights: SimilarityWeights = field(default_factory=SimilarityWeights)

    # ── Execution ──────────────────────────────────────────────────────────────
    max_workers: int = field(
        default_factory=lambda: int(os.getenv("CLUSTER_MAX_WORKERS", str(MATRIX_MAX_WORKERS)))
    )
    spatial_prefilter: bool = False
    assignment_policy: str = ASSIGNMENT_POLICY
    join_new_clusters: bool = JOIN_NEW_CLUSTERS

    # ── Output and logging ─────────────────────────────────────────────────────
    output_root: str = field(default_factory=lambda: os.getenv("OUTPUT_ROOT", OUTPUT_ROOT))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL))

    def __post_init__(self) -> None:
        if self.max_distance_km <= 0:
            raise ValueError("max_distance_km must be positive")
        if self.min_submissions < 1:
            raise ValueError("min_submissions must be at least 1")
        if not 0.0 <= self.semantic_similarity_threshold <= 1.0:
            raise ValueError("semantic_similarity_threshold must be within [0, 1]")
        if self.temporal_window_hours <= 0:
            raise ValueError("temporal_window_hours must be positive")
        total = self.category_weight + self.location_weight + self.content_weight + self.time_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Clustering weights must sum to 1.0, got {total:.4f}")
        if self.assignment_policy not in _ASSIGNMENT_POLICIES:
            raise ValueError(
                f"assignment_policy must be one of {_ASSIGNMENT_POLICIES}, "
                f"got {self.assignment_policy!r}"
            )
        # Clamp worker count to at least one thread
        if self.max_workers < 1:
            self.max_workers = 1
