"""ClusteringAgent: batch clustering of a report snapshot.

Stages:
- Pairwise similarity matrix (threaded, optionally spatially pre-filtered)
- DBSCAN-style density grouping in index order
- Cluster aggregation of every group that meets min_submissions
- Related-cluster linking
- Run metrics (cluster count, mean size, share of reports clustered, timing)
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import List

from reportfusion.agents.base import BaseAgent
from reportfusion.analysis.aggregation import aggregate_cluster
from reportfusion.analysis.cluster_graph import link_related_clusters
from reportfusion.analysis.density import dbscan_assignments, group_assignments
from reportfusion.analysis.similarity_matrix import build_similarity_matrix
from reportfusion.models.cluster import Cluster
from reportfusion.models.pipeline import ClusteringContext, check_cancelled
from reportfusion.models.results import ClusteringMetrics, ClusteringOutcome

logger = logging.getLogger(__name__)


def default_cluster_id() -> str:
    """Random cluster id of the form ``cluster_<12 hex chars>``."""
    return f"cluster_{uuid.uuid4().hex[:12]}"


class ClusteringAgent(BaseAgent):
    """Group a batch of reports into clusters of the same real-world problem."""

    name = "ClusteringAgent"
    version = "1.0.0"

    def run(self, context: ClusteringContext) -> ClusteringOutcome:
        """Cluster ``context.reports``.

        Args:
            context: ClusteringContext with config, store and the report batch.

        Returns:
            ClusteringOutcome with clusters, orphaned reports and metrics.
        """
        cfg = context.config
        reports = context.reports
        start = time.monotonic()
        outcome = ClusteringOutcome(store=context.store)

        if len(reports) < cfg.min_submissions:
            message = (
                f"Only {len(reports)} report(s) supplied; at least "
                f"{cfg.min_submissions} are needed to form a cluster"
            )
            logger.info("ClusteringAgent: %s, all reports orphaned", message)
            context.warnings.append(message)
            outcome.orphaned = list(reports)
            outcome.metrics = _metrics([], len(reports), start)
            return outcome

        logger.info("ClusteringAgent: clustering %d reports", len(reports))

        # ── Similarity matrix ─────────────────────────────────────────────────
        matrix = build_similarity_matrix(reports, cfg, cancel=context.cancel)

        # ── Density grouping ──────────────────────────────────────────────────
        assignments = dbscan_assignments(
            matrix,
            threshold=cfg.semantic_similarity_threshold,
            min_points=cfg.min_submissions,
            cancel=context.cancel,
        )

        # ── Aggregation ───────────────────────────────────────────────────────
        id_factory = context.id_factory or default_cluster_id
        clusters: List[Cluster] = []
        for group in group_assignments(assignments):
            check_cancelled(context.cancel, "cluster aggregation")
            if len(group) < cfg.min_submissions:
                logger.debug("Dropping group of %d below min_submissions", len(group))
                continue
            members = [reports[i] for i in group]
            clusters.append(aggregate_cluster(id_factory(), members, cfg, context.now))

        link_related_clusters(clusters, cfg)

        clustered_ids = {rid for c in clusters for rid in c.member_ids}
        outcome.clusters = clusters
        outcome.orphaned = [r for r in reports if r.report_id not in clustered_ids]
        outcome.metrics = _metrics(clusters, len(reports), start)

        logger.info(
            "ClusteringAgent: %d clusters, %d orphaned reports",
            len(clusters),
            len(outcome.orphaned),
        )
        return outcome

    def validate_output(self, result: ClusteringOutcome) -> bool:
        """Every report must appear exactly once, in one cluster or among the orphans."""
        if result is None:
            return False
        seen = [rid for c in result.clusters for rid in c.member_ids]
        seen.extend(r.report_id for r in result.orphaned)
        return len(seen) == len(set(seen))


def _metrics(clusters: List[Cluster], total_reports: int, start: float) -> ClusteringMetrics:
    clustered = sum(c.submission_count for c in clusters)
    avg_size = clustered / len(clusters) if clusters else 0.0
    accuracy = clustered / total_reports if total_reports else 0.0
    return ClusteringMetrics(
        total_clusters=len(clusters),
        avg_cluster_size=round(avg_size, 2),
        clustering_accuracy=round(accuracy, 2),
        processing_time_ms=round((time.monotonic() - start) * 1000.0, 2),
    )
