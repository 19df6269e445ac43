"""Cluster aggregation: derive every Cluster field from its member reports.

Aggregates are never patched incrementally. Whenever membership changes the
whole cluster is rebuilt from the current members via refresh_cluster().
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from config.defaults import (
    DEFAULT_REPORT_URGENCY,
    IMPACT_COUNT_CAP,
    TREND_CHANGE_RATIO,
    TREND_MIN_REPORTS,
    URGENCY_COUNT_BONUS_CAP,
)
from config.settings import ClusteringConfig
from reportfusion.analysis.ranking import compute_priority
from reportfusion.models.cluster import Cluster, ClusterStatus, TrendDirection
from reportfusion.models.reports import IssueCategory, Report, ReportStore, Severity
from reportfusion.utils.geo_utils import haversine_km, mean_coordinate

logger = logging.getLogger(__name__)

_C = IssueCategory

# ── Indonesian display strings ────────────────────────────────────────────────
_CATEGORY_LABELS: Dict[str, str] = {
    _C.INFRASTRUCTURE: "Infrastruktur",
    _C.ENVIRONMENT: "Lingkungan",
    _C.SAFETY: "Keamanan",
    _C.HEALTH: "Kesehatan",
    _C.EDUCATION: "Pendidikan",
    _C.GOVERNANCE: "Pelayanan Publik",
    _C.SOCIAL: "Sosial",
    _C.OTHER: "Umum",
}

_UNKNOWN_AREA = "area yang tidak diketahui"
_DEFAULT_AREA_LABEL = "Area"

_SUMMARY_TEMPLATE = (
    "Terdapat {count} laporan terkait masalah {category} di {area}. "
    "Masalah ini memerlukan perhatian dari pihak terkait untuk penanganan yang tepat."
)

_ACTION_TEMPLATES: Dict[str, List[str]] = {
    _C.INFRASTRUCTURE: [
        "Koordinasi dengan Dinas Pekerjaan Umum",
        "Survey lapangan untuk assessment kerusakan",
        "Alokasi anggaran untuk perbaikan",
        "Jadwalkan perbaikan berdasarkan prioritas",
    ],
    _C.ENVIRONMENT: [
        "Koordinasi dengan Dinas Lingkungan Hidup",
        "Pembersihan dan penataan area",
        "Sosialisasi kepada masyarakat",
        "Monitoring berkelanjutan",
    ],
    _C.SAFETY: [
        "Koordinasi dengan Kepolisian setempat",
        "Peningkatan patroli keamanan",
        "Instalasi sistem keamanan",
        "Pembentukan ronda masyarakat",
    ],
    _C.HEALTH: [
        "Koordinasi dengan Dinas Kesehatan",
        "Pemeriksaan dan assessment medis",
        "Pemberian layanan kesehatan",
        "Edukasi kesehatan masyarakat",
    ],
    _C.EDUCATION: [
        "Koordinasi dengan Dinas Pendidikan",
        "Assessment fasilitas pendidikan",
        "Peningkatan kualitas layanan",
        "Dukungan program pendidikan",
    ],
    _C.GOVERNANCE: [
        "Review prosedur pelayanan",
        "Pelatihan petugas pelayanan",
        "Digitalisasi layanan publik",
        "Monitoring kepuasan masyarakat",
    ],
    _C.SOCIAL: [
        "Koordinasi dengan Dinas Sosial",
        "Program pemberdayaan masyarakat",
        "Mediasi konflik jika diperlukan",
        "Penguatan kohesi sosial",
    ],
    _C.OTHER: [
        "Assessment lebih lanjut diperlukan",
        "Koordinasi dengan dinas terkait",
        "Konsultasi dengan ahli",
        "Tindak lanjut sesuai analisis",
    ],
}


def category_label(category: str) -> str:
    """Title-case Indonesian label for a category ("Umum" for unknown)."""
    return _CATEGORY_LABELS.get(category, _CATEGORY_LABELS[_C.OTHER])


def suggested_actions(category: str) -> List[str]:
    """Response actions for a category, falling back to the generic list."""
    return list(_ACTION_TEMPLATES.get(category, _ACTION_TEMPLATES[_C.OTHER]))


# ── Field derivations ─────────────────────────────────────────────────────────

def dominant_category(members: Sequence[Report]) -> str:
    """Most common category; ties go to the first encountered, missing counts as OTHER."""
    counts = Counter(r.category or _C.OTHER for r in members)
    best, best_count = _C.OTHER, 0
    for category, count in counts.items():
        if count > best_count:
            best, best_count = category, count
    return best


def max_severity(members: Sequence[Report]) -> str:
    """Highest member severity; missing or unknown values count as LOW."""
    top = 0
    for report in members:
        rank = Severity.rank(report.severity)
        if rank is not None and rank > top:
            top = rank
    return Severity.LEVELS[top]


def affected_areas(members: Sequence[Report]) -> List[str]:
    """Distinct village/sub-district/district names in member order."""
    seen: Dict[str, None] = {}
    for report in members:
        for name in report.location.area_names():
            seen.setdefault(name, None)
    return list(seen)


def average_quality(members: Sequence[Report]) -> float:
    """Mean quality over members that carry a score; 0.0 if none do."""
    scores = [r.quality_score for r in members if r.quality_score is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def cluster_urgency(members: Sequence[Report]) -> float:
    if not members:
        return 0.0
    signals = [r.urgency if r.urgency is not None else DEFAULT_REPORT_URGENCY for r in members]
    mean_urgency = sum(signals) / len(signals)
    count_bonus = min(URGENCY_COUNT_BONUS_CAP, len(members) / 10.0)
    return max(0.0, min(1.0, mean_urgency + count_bonus))


def cluster_impact(member_count: int, avg_quality: float) -> float:
    count_score = min(IMPACT_COUNT_CAP, member_count / 20.0)
    return max(0.0, min(1.0, count_score + avg_quality / 100.0))


def trend_direction(members: Sequence[Report]) -> str:
    """Compare arrivals in the late half of the reporting span with the early half.

    Clusters with fewer than TREND_MIN_REPORTS members, or whose reports all
    share one timestamp, are reported as stable.
    """
    if len(members) < TREND_MIN_REPORTS:
        return TrendDirection.STABLE
    times = sorted(r.created_at for r in members)
    span = times[-1] - times[0]
    if span.total_seconds() <= 0:
        return TrendDirection.STABLE
    midpoint = times[0] + span / 2
    early = sum(1 for t in times if t < midpoint)
    late = len(times) - early
    if late >= early * TREND_CHANGE_RATIO:
        return TrendDirection.INCREASING
    if early >= late * TREND_CHANGE_RATIO:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def summarize(members: Sequence[Report], category: str, areas: List[str]) -> str:
    """Indonesian one-paragraph summary of the cluster."""
    return _SUMMARY_TEMPLATE.format(
        count=len(members),
        category=category_label(category).lower(),
        area=areas[0] if areas else _UNKNOWN_AREA,
    )


# ── Cluster construction ──────────────────────────────────────────────────────

def aggregate_cluster(
    cluster_id: str,
    members: Sequence[Report],
    config: ClusteringConfig,
    now: datetime,
    created_at: Optional[datetime] = None,
    status: str = ClusterStatus.ACTIVE,
    related_cluster_ids: Optional[List[str]] = None,
) -> Cluster:
    """Build a Cluster whose every derived field reflects ``members``.

    Args:
        cluster_id: Identifier chosen by the caller.
        members: Member reports in membership order (first is the representative).
        config: Clustering configuration.
        now: Reference time for priority recency and timestamps.
        created_at: Original creation time when rebuilding an existing cluster.
        status: Lifecycle status to carry over.
        related_cluster_ids: Related-cluster links to carry over.

    Returns:
        Fully populated Cluster.

    Raises:
        ValueError: If members is empty.
    """
    if not members:
        raise ValueError(f"Cannot aggregate cluster {cluster_id} without members")

    points = [r.coordinates for r in members if r.coordinates is not None]
    if len(points) < len(members):
        logger.debug(
            "Cluster %s: %d of %d members have no usable coordinates",
            cluster_id,
            len(members) - len(points),
            len(members),
        )
    centroid = mean_coordinate(points)
    radius = 0.0
    if centroid is not None:
        radius = max(haversine_km(centroid[0], centroid[1], lat, lng) for lat, lng in points)

    category = dominant_category(members)
    areas = affected_areas(members)
    avg_quality = average_quality(members)
    times = [r.created_at for r in members]

    cluster = Cluster(
        cluster_id=cluster_id,
        name=f"{category_label(category)} - {areas[0] if areas else _DEFAULT_AREA_LABEL}",
        description=summarize(members, category, areas),
        category=category,
        severity=max_severity(members),
        member_ids=[r.report_id for r in members],
        centroid_lat=centroid[0] if centroid else None,
        centroid_lng=centroid[1] if centroid else None,
        radius_km=radius,
        affected_areas=areas,
        avg_quality_score=avg_quality,
        urgency_score=cluster_urgency(members),
        impact_score=cluster_impact(len(members), avg_quality),
        first_reported=min(times),
        last_reported=max(times),
        trend_direction=trend_direction(members),
        suggested_actions=suggested_actions(category),
        related_cluster_ids=list(related_cluster_ids or []),
        status=status,
        created_at=created_at or now,
        updated_at=now,
    )
    cluster.priority_rank = compute_priority(cluster, now)
    return cluster


def refresh_cluster(
    cluster: Cluster,
    store: ReportStore,
    config: ClusteringConfig,
    now: datetime,
) -> Cluster:
    """Rebuild a cluster from its current member ids.

    Identity, status, creation time and related-cluster links are preserved;
    everything else is recomputed. The input cluster is not modified.

    Raises:
        KeyError: If a member id is not in the store.
    """
    members = store.resolve(cluster.member_ids)
    return aggregate_cluster(
        cluster.cluster_id,
        members,
        config,
        now,
        created_at=cluster.created_at,
        status=cluster.status,
        related_cluster_ids=cluster.related_cluster_ids,
    )
