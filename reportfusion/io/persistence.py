"""JSON persistence for ReportFusion.

Atomic file writes (write-to-temp-then-rename), tolerant JSON loading, and
the mapping between JSON records and Report / Cluster models. File I/O and
field mapping only; no clustering logic.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from reportfusion.models.cluster import Cluster, ClusterStatus, TrendDirection
from reportfusion.models.reports import Location, Report
from reportfusion.models.results import ClusterRecommendation
from reportfusion.utils.date_utils import parse_timestamp, to_iso

logger = logging.getLogger(__name__)


class _DataclassEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses, datetimes and Path objects."""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, datetime):
            return to_iso(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(data: Any, path: str | Path, indent: int = 2) -> None:
    """Atomically write data to a JSON file.

    Creates parent directories if they do not exist.

    Args:
        data: Data to serialize. Supports dicts, lists, dataclasses, datetimes and Paths.
        path: Output file path.
        indent: JSON indentation level (default: 2).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        serialized = json.dumps(data, indent=indent, ensure_ascii=False, cls=_DataclassEncoder)
    except (TypeError, ValueError) as exc:
        logger.error("JSON serialization failed for %s: %s", path, exc)
        raise

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp.write(serialized)
        tmp_path = tmp.name

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        os.unlink(tmp_path)
        logger.error("Atomic rename failed for %s: %s", path, exc)
        raise

    logger.debug("Saved JSON to %s (%d bytes)", path, len(serialized))


def load_json(path: str | Path) -> Optional[Any]:
    """Load and parse a JSON file.

    Returns None if the file does not exist or cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("JSON file not found: %s", path)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to load JSON from %s: %s", path, exc)
        return None


# ── Reports ───────────────────────────────────────────────────────────────────

def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def report_from_dict(record: Dict[str, Any]) -> Report:
    """Build a Report from a JSON record.

    Accepts ``location.coordinates`` as a [lat, lng] pair or separate
    ``lat``/``lng`` keys. Unparseable coordinates are dropped, not fatal.

    Raises:
        ValueError: If the id or the creation timestamp is missing or invalid.
    """
    loc = record.get("location") or {}
    lat, lng = _optional_float(loc.get("lat")), _optional_float(loc.get("lng"))
    coords = loc.get("coordinates")
    if isinstance(coords, (list, tuple)) and len(coords) == 2:
        lat, lng = _optional_float(coords[0]), _optional_float(coords[1])

    created_at = parse_timestamp(record.get("created_at"))
    if created_at is None:
        raise ValueError(f"Report {record.get('report_id')!r} has no valid created_at")

    return Report(
        report_id=str(record.get("report_id") or record.get("id") or ""),
        description=record.get("description") or "",
        created_at=created_at,
        location=Location(
            lat=lat,
            lng=lng,
            accuracy_m=_optional_float(loc.get("accuracy_m")),
            address=loc.get("address") or "",
            village=loc.get("village") or "",
            sub_district=loc.get("sub_district") or "",
            district=loc.get("district") or "",
            province=loc.get("province") or "",
        ),
        category=record.get("category"),
        severity=record.get("severity"),
        quality_score=_optional_float(record.get("quality_score")),
        urgency=_optional_float(record.get("urgency")),
    )


def report_to_dict(report: Report) -> Dict[str, Any]:
    record = dataclasses.asdict(report)
    record["created_at"] = to_iso(report.created_at)
    return record


def load_reports(path: str | Path) -> List[Report]:
    """Load a JSON list of report records.

    Raises:
        ValueError: If the file is missing, unparseable or not a list.
    """
    data = load_json(path)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of reports in {path}")
    return [report_from_dict(record) for record in data]


# ── Clusters ──────────────────────────────────────────────────────────────────

def cluster_to_dict(cluster: Cluster) -> Dict[str, Any]:
    record = dataclasses.asdict(cluster)
    for key in ("first_reported", "last_reported", "created_at", "updated_at"):
        record[key] = to_iso(getattr(cluster, key))
    record["submission_count"] = cluster.submission_count
    return record


def cluster_from_dict(record: Dict[str, Any]) -> Cluster:
    """Rebuild a Cluster saved by cluster_to_dict (unknown keys are ignored)."""
    status = record.get("status") or ClusterStatus.ACTIVE
    if status not in ClusterStatus.ALL:
        logger.warning("Unknown cluster status %r; treating as active", status)
        status = ClusterStatus.ACTIVE
    return Cluster(
        cluster_id=str(record["cluster_id"]),
        name=record.get("name", ""),
        description=record.get("description", ""),
        category=record.get("category") or "OTHER",
        severity=record.get("severity") or "LOW",
        member_ids=[str(rid) for rid in record.get("member_ids", [])],
        centroid_lat=_optional_float(record.get("centroid_lat")),
        centroid_lng=_optional_float(record.get("centroid_lng")),
        radius_km=float(record.get("radius_km") or 0.0),
        affected_areas=list(record.get("affected_areas", [])),
        avg_quality_score=float(record.get("avg_quality_score") or 0.0),
        urgency_score=float(record.get("urgency_score") or 0.0),
        impact_score=float(record.get("impact_score") or 0.0),
        priority_rank=int(record.get("priority_rank") or 0),
        first_reported=parse_timestamp(record.get("first_reported")),
        last_reported=parse_timestamp(record.get("last_reported")),
        trend_direction=record.get("trend_direction") or TrendDirection.STABLE,
        suggested_actions=list(record.get("suggested_actions", [])),
        related_cluster_ids=list(record.get("related_cluster_ids", [])),
        status=status,
        created_at=parse_timestamp(record.get("created_at")),
        updated_at=parse_timestamp(record.get("updated_at")),
    )


def save_clusters(clusters: List[Cluster], path: str | Path) -> None:
    save_json([cluster_to_dict(c) for c in clusters], path)


def load_clusters(path: str | Path) -> List[Cluster]:
    """Load clusters saved by save_clusters; a missing file yields an empty list."""
    data = load_json(path)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of clusters in {path}")
    return [cluster_from_dict(record) for record in data]


def recommendation_to_dict(rec: ClusterRecommendation) -> Dict[str, Any]:
    return {
        "cluster_id": rec.cluster.cluster_id,
        "name": rec.cluster.name,
        "priority": rec.priority,
        "urgency_level": rec.urgency_level,
        "impact_label": rec.impact_label,
        "recommended_actions": list(rec.recommended_actions),
        "submission_count": rec.cluster.submission_count,
    }
