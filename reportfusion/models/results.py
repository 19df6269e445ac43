"""Operation result models for ReportFusion.

Every public engine operation returns an OperationResult instead of raising.
The payload types carried in ``OperationResult.data`` are defined here too.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, List, Optional, TypeVar

from reportfusion.models.cluster import Cluster
from reportfusion.models.reports import Report

if TYPE_CHECKING:
    from reportfusion.models.reports import ReportStore

T = TypeVar("T")


class ErrorKind:
    """Failure categories reported in OperationResult.error_kind."""

    COMPUTATION_FAILURE = "COMPUTATION_FAILURE"
    CANCELLED = "CANCELLED"
    INVALID_INPUT = "INVALID_INPUT"


@dataclass
class OperationResult(Generic[T]):
    """Success flag plus either a payload or a user-facing error message."""

    success: bool
    data: Optional[T] = None
    error: str = ""
    error_kind: str = ""
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T, warnings: Optional[List[str]] = None) -> "OperationResult[T]":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls,
        error: str,
        issues: Optional[List[str]] = None,
        error_kind: str = ErrorKind.COMPUTATION_FAILURE,
    ) -> "OperationResult[Any]":
        return cls(success=False, error=error, error_kind=error_kind, issues=list(issues or []))


@dataclass
class ClusteringMetrics:
    """Summary statistics for one batch clustering run."""

    total_clusters: int = 0
    avg_cluster_size: float = 0.0
    clustering_accuracy: float = 0.0     # share of input reports placed in a cluster
    processing_time_ms: float = 0.0


@dataclass
class ClusteringOutcome:
    """Complete output of a batch clustering run."""

    clusters: List[Cluster] = field(default_factory=list)
    orphaned: List[Report] = field(default_factory=list)
    metrics: ClusteringMetrics = field(default_factory=ClusteringMetrics)
    store: Optional["ReportStore"] = None


@dataclass
class UpdateOutcome:
    """Output of an incremental maintenance pass."""

    updated_clusters: List[Cluster] = field(default_factory=list)
    new_clusters: List[Cluster] = field(default_factory=list)
    orphaned: List[Report] = field(default_factory=list)


@dataclass
class ClusterRecommendation:
    """A cluster with its response priority and recommended actions."""

    cluster: Cluster
    priority: int
    urgency_level: str          # "low" | "medium" | "high" | "critical"
    impact_label: str           # "Dampak Tinggi" … "Dampak Minimal"
    recommended_actions: List[str] = field(default_factory=list)
