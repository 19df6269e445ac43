"""ReportFusion analysis package.

Pure analytical functions: similarity scoring, density grouping, cluster
aggregation and ranking. No I/O.
"""

from reportfusion.analysis.aggregation import aggregate_cluster, refresh_cluster
from reportfusion.analysis.cluster_graph import build_cluster_graph, link_related_clusters
from reportfusion.analysis.density import dbscan_assignments, group_assignments
from reportfusion.analysis.ranking import compute_priority, impact_label, rank_clusters, urgency_level
from reportfusion.analysis.similarity import score_similarity
from reportfusion.analysis.similarity_matrix import build_similarity_matrix

__all__ = [
    "aggregate_cluster",
    "refresh_cluster",
    "build_cluster_graph",
    "link_related_clusters",
    "dbscan_assignments",
    "group_assignments",
    "compute_priority",
    "impact_label",
    "rank_clusters",
    "urgency_level",
    "score_similarity",
    "build_similarity_matrix",
]
