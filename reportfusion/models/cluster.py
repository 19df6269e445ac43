"""Cluster data model for ReportFusion.

A Cluster groups reports that describe the same real-world problem. It holds
member ids only; every aggregate field is derived from the members resolved
through a ReportStore (see reportfusion.analysis.aggregation).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


class ClusterStatus:
    """Lifecycle states of a cluster."""

    ACTIVE = "active"
    RESOLVED = "resolved"
    ARCHIVED = "archived"

    ALL = (ACTIVE, RESOLVED, ARCHIVED)


class TrendDirection:
    """Direction of report arrivals over a cluster's reporting span."""

    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass
class Cluster:
    """An aggregated issue built from two or more similar reports."""

    cluster_id: str
    name: str = ""
    description: str = ""
    category: str = "OTHER"
    severity: str = "LOW"
    member_ids: List[str] = field(default_factory=list)

    # ── Spatial extent ─────────────────────────────────────────────────────────
    centroid_lat: Optional[float] = None     # None when no member has coordinates
    centroid_lng: Optional[float] = None
    radius_km: float = 0.0
    affected_areas: List[str] = field(default_factory=list)

    # ── Scores ─────────────────────────────────────────────────────────────────
    avg_quality_score: float = 0.0           # 0–100
    urgency_score: float = 0.0               # 0–1
    impact_score: float = 0.0                # 0–1
    priority_rank: int = 0                   # 0–10

    # ── Temporal extent ────────────────────────────────────────────────────────
    first_reported: Optional[datetime] = None
    last_reported: Optional[datetime] = None
    trend_direction: str = TrendDirection.STABLE

    suggested_actions: List[str] = field(default_factory=list)
    related_cluster_ids: List[str] = field(default_factory=list)
    status: str = ClusterStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def submission_count(self) -> int:
        return len(self.member_ids)

    @property
    def centroid(self) -> Optional[tuple]:
        if self.centroid_lat is None or self.centroid_lng is None:
            return None
        return self.centroid_lat, self.centroid_lng

    @property
    def representative_id(self) -> str:
        """Id of the first member, used as the cluster's comparison anchor."""
        if not self.member_ids:
            raise ValueError(f"Cluster {self.cluster_id} has no members")
        return self.member_ids[0]

    def copy(self) -> "Cluster":
        """Independent copy; list fields are not shared with the original."""
        return dataclasses.replace(
            self,
            member_ids=list(self.member_ids),
            affected_areas=list(self.affected_areas),
            suggested_actions=list(self.suggested_actions),
            related_cluster_ids=list(self.related_cluster_ids),
        )
