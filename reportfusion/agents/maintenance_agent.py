"""MaintenanceAgent: fold a batch of new reports into existing clusters.

Each new report, in input order, is compared with each candidate cluster's
representative (its first member). Candidates are the existing clusters,
followed by clusters opened earlier in the same pass when
``join_new_clusters`` is set. A report that matches no cluster is compared
with the orphan pool and may open a new cluster with the orphans it
resembles; otherwise it joins the pool for the next pass.

The caller's clusters are never modified: the agent works on copies.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from config.settings import ClusteringConfig
from reportfusion.agents.base import BaseAgent
from reportfusion.agents.clustering_agent import default_cluster_id
from reportfusion.analysis.aggregation import aggregate_cluster, refresh_cluster
from reportfusion.analysis.cluster_graph import link_related_clusters
from reportfusion.analysis.similarity import score_similarity
from reportfusion.models.cluster import Cluster
from reportfusion.models.pipeline import ClusteringContext, check_cancelled
from reportfusion.models.reports import Report, ReportStore
from reportfusion.models.results import UpdateOutcome

logger = logging.getLogger(__name__)


class MaintenanceAgent(BaseAgent):
    """Incrementally assign new reports to clusters, or to new clusters."""

    name = "MaintenanceAgent"
    version = "1.0.0"

    def run(self, context: ClusteringContext) -> UpdateOutcome:
        """Apply ``context.reports`` to ``context.existing_clusters``.

        Args:
            context: ClusteringContext whose store resolves every member id of
                the existing clusters, the new reports and the carried orphans.

        Returns:
            UpdateOutcome with every existing cluster (updated where a report
            joined it, in the original order), the new clusters and the
            remaining orphan pool.
        """
        cfg = context.config
        store = context.store
        id_factory = context.id_factory or default_cluster_id

        updated: List[Cluster] = [c.copy() for c in context.existing_clusters]
        created: List[Cluster] = []
        pool: List[Report] = list(context.orphaned)
        clustered_ids: Set[str] = {rid for c in updated for rid in c.member_ids}
        changed = False

        logger.info(
            "MaintenanceAgent: %d new reports, %d existing clusters, %d carried orphans",
            len(context.reports),
            len(updated),
            len(pool),
        )

        for report in context.reports:
            check_cancelled(context.cancel, "cluster maintenance")

            if report.report_id in clustered_ids:
                message = f"Report {report.report_id} is already clustered; skipping"
                logger.warning("MaintenanceAgent: %s", message)
                context.warnings.append(message)
                continue
            pool = [o for o in pool if o.report_id != report.report_id]

            candidates = updated + created if cfg.join_new_clusters else updated
            index = self._select_cluster(report, candidates, store, cfg)
            if index is not None:
                target = candidates[index].copy()
                target.member_ids.append(report.report_id)
                refreshed = refresh_cluster(target, store, cfg, context.now)
                if index < len(updated):
                    updated[index] = refreshed
                else:
                    created[index - len(updated)] = refreshed
                clustered_ids.add(report.report_id)
                changed = True
                logger.debug("Report %s joined cluster %s", report.report_id, refreshed.cluster_id)
                continue

            related = [
                orphan
                for orphan in pool
                if score_similarity(report, orphan, cfg).overall >= cfg.semantic_similarity_threshold
            ]
            if len(related) + 1 >= cfg.min_submissions:
                members = [report] + related
                cluster = aggregate_cluster(id_factory(), members, cfg, context.now)
                created.append(cluster)
                used = {r.report_id for r in members}
                pool = [o for o in pool if o.report_id not in used]
                clustered_ids.update(used)
                changed = True
                logger.debug(
                    "Report %s opened cluster %s with %d orphan(s)",
                    report.report_id,
                    cluster.cluster_id,
                    len(related),
                )
            else:
                pool.append(report)

        if changed:
            link_related_clusters(updated + created, cfg)

        logger.info(
            "MaintenanceAgent: %d new clusters, %d orphans remaining",
            len(created),
            len(pool),
        )
        return UpdateOutcome(updated_clusters=updated, new_clusters=created, orphaned=pool)

    @staticmethod
    def _select_cluster(
        report: Report,
        candidates: List[Cluster],
        store: ReportStore,
        cfg: ClusteringConfig,
    ) -> Optional[int]:
        """Index of the cluster the report should join, or None.

        ``first_match`` returns the first candidate whose representative clears
        the threshold; ``best_match`` returns the highest-scoring one (earliest
        on ties).
        """
        best_index: Optional[int] = None
        best_score = -1.0
        for index, cluster in enumerate(candidates):
            if not cluster.member_ids:
                continue
            representative = store.get(cluster.representative_id)
            score = score_similarity(report, representative, cfg).overall
            if score < cfg.semantic_similarity_threshold:
                continue
            if cfg.assignment_policy == "first_match":
                return index
            if score > best_score:
                best_index, best_score = index, score
        return best_index
