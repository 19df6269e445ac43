"""ReportFusion configuration package."""

from config.defaults import (
    MAX_DISTANCE_KM,
    MIN_SUBMISSIONS,
    SEMANTIC_SIMILARITY_THRESHOLD,
    TEMPORAL_WINDOW_HOURS,
)
from config.settings import ClusteringConfig, SimilarityWeights

__all__ = [
    "ClusteringConfig",
    "SimilarityWeights",
    "MAX_DISTANCE_KM",
    "MIN_SUBMISSIONS",
    "SEMANTIC_SIMILARITY_THRESHOLD",
    "TEMPORAL_WINDOW_HOURS",
]
