"""ReportFusion: clustering engine for citizen issue reports.

Public API surface:
    - ClusteringConfig: Runtime configuration
    - Report, Location, ReportStore: Input models
    - similarity, similarity_matrix, cluster_reports, update_clusters,
      rank_clusters: Engine operations returning OperationResult
"""

__version__ = "1.0.0"
__author__ = "ReportFusion Contributors"

from config.settings import ClusteringConfig
from reportfusion.engine import (
    cluster_reports,
    rank_clusters,
    similarity,
    similarity_matrix,
    update_clusters,
)
from reportfusion.models.reports import Location, Report, ReportStore

__all__ = [
    "__version__",
    "ClusteringConfig",
    "Location",
    "Report",
    "ReportStore",
    "similarity",
    "similarity_matrix",
    "cluster_reports",
    "update_clusters",
    "rank_clusters",
]
