"""ReportFusion data models package.

All engine inputs and outputs are typed dataclasses defined here.
"""

from reportfusion.models.cluster import Cluster, ClusterStatus, TrendDirection
from reportfusion.models.pipeline import (
    CancellationToken,
    ClusteringContext,
    OperationCancelled,
)
from reportfusion.models.reports import IssueCategory, Location, Report, ReportStore, Severity
from reportfusion.models.results import (
    ClusteringMetrics,
    ClusteringOutcome,
    ClusterRecommendation,
    ErrorKind,
    OperationResult,
    UpdateOutcome,
)
from reportfusion.models.similarity import SimilarityScore

__all__ = [
    "CancellationToken",
    "Cluster",
    "ClusterRecommendation",
    "ClusterStatus",
    "ClusteringContext",
    "ClusteringMetrics",
    "ClusteringOutcome",
    "ErrorKind",
    "IssueCategory",
    "Location",
    "OperationCancelled",
    "OperationResult",
    "Report",
    "ReportStore",
    "Severity",
    "SimilarityScore",
    "TrendDirection",
    "UpdateOutcome",
]
