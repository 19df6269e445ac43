"""RankingAgent: order clusters for government response."""

from __future__ import annotations

import logging
from typing import List

from reportfusion.agents.base import BaseAgent
from reportfusion.analysis.ranking import rank_clusters
from reportfusion.models.pipeline import ClusteringContext
from reportfusion.models.results import ClusterRecommendation

logger = logging.getLogger(__name__)


class RankingAgent(BaseAgent):
    """Score ``context.existing_clusters`` and sort them by descending priority."""

    name = "RankingAgent"
    version = "1.0.0"

    def run(self, context: ClusteringContext) -> List[ClusterRecommendation]:
        recommendations = rank_clusters(context.existing_clusters, context.now)
        if recommendations:
            top = recommendations[0]
            logger.info(
                "RankingAgent: %d clusters ranked; top %s (priority=%d, urgency=%s)",
                len(recommendations),
                top.cluster.cluster_id,
                top.priority,
                top.urgency_level,
            )
        else:
            logger.info("RankingAgent: no clusters to rank")
        return recommendations

    def validate_output(self, result: List[ClusterRecommendation]) -> bool:
        return result is not None and all(
            a.priority >= b.priority for a, b in zip(result, result[1:])
        )
