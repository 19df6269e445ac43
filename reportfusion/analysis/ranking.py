"""Cluster priority scoring and recommendation ranking.

compute_priority() is the single priority formula: the aggregator calls it
when a cluster is (re)built and the ranker calls it again with its own
reference time, so both always agree for the same ``now``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import List, Sequence

from config.defaults import (
    IMPACT_HIGH_THRESHOLD,
    IMPACT_LOW_THRESHOLD,
    IMPACT_MEDIUM_THRESHOLD,
    PRIORITY_COUNT_SATURATION,
    PRIORITY_COUNT_WEIGHT,
    PRIORITY_IMPACT_WEIGHT,
    PRIORITY_RECENCY_DAYS,
    PRIORITY_RECENCY_WEIGHT,
    PRIORITY_URGENCY_WEIGHT,
    URGENCY_CRITICAL_THRESHOLD,
    URGENCY_HIGH_THRESHOLD,
    URGENCY_MEDIUM_THRESHOLD,
)
from reportfusion.models.cluster import Cluster
from reportfusion.models.results import ClusterRecommendation
from reportfusion.utils.date_utils import days_since


def recency_score(cluster: Cluster, now: datetime) -> float:
    """1.0 for a report filed now, decaying linearly to 0 over PRIORITY_RECENCY_DAYS."""
    if cluster.last_reported is None:
        return 1.0
    elapsed_days = max(0.0, days_since(cluster.last_reported, now))
    return max(0.0, 1.0 - elapsed_days / PRIORITY_RECENCY_DAYS)


def compute_priority(cluster: Cluster, now: datetime) -> int:
    """Priority rank on a 0–10 scale.

    Args:
        cluster: Cluster with urgency/impact scores and last_reported set.
        now: Reference time for the recency component.

    Returns:
        round(10 × (urgency×0.4 + impact×0.3 + count×0.2 + recency×0.1)).
    """
    count_score = min(1.0, cluster.submission_count / PRIORITY_COUNT_SATURATION)
    weighted = (
        cluster.urgency_score * PRIORITY_URGENCY_WEIGHT
        + cluster.impact_score * PRIORITY_IMPACT_WEIGHT
        + count_score * PRIORITY_COUNT_WEIGHT
        + recency_score(cluster, now) * PRIORITY_RECENCY_WEIGHT
    )
    # Half-up rounding: 6.5 ranks as 7
    return int(math.floor(weighted * 10 + 0.5))


def urgency_level(urgency_score: float) -> str:
    if urgency_score >= URGENCY_CRITICAL_THRESHOLD:
        return "critical"
    if urgency_score >= URGENCY_HIGH_THRESHOLD:
        return "high"
    if urgency_score >= URGENCY_MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def impact_label(impact_score: float) -> str:
    if impact_score >= IMPACT_HIGH_THRESHOLD:
        return "Dampak Tinggi"
    if impact_score >= IMPACT_MEDIUM_THRESHOLD:
        return "Dampak Sedang"
    if impact_score >= IMPACT_LOW_THRESHOLD:
        return "Dampak Rendah"
    return "Dampak Minimal"


def rank_clusters(clusters: Sequence[Cluster], now: datetime) -> List[ClusterRecommendation]:
    """Build recommendations sorted by descending priority.

    The sort is stable: clusters with equal priority keep their input order.
    """
    recommendations = [
        ClusterRecommendation(
            cluster=cluster,
            priority=compute_priority(cluster, now),
            urgency_level=urgency_level(cluster.urgency_score),
            impact_label=impact_label(cluster.impact_score),
            recommended_actions=list(cluster.suggested_actions),
        )
        for cluster in clusters
    ]
    recommendations.sort(key=lambda rec: rec.priority, reverse=True)
    return recommendations
