"""Unit tests for reportfusion.agents.clustering_agent."""

from __future__ import annotations

import numpy as np

from config.settings import ClusteringConfig
from reportfusion.agents.clustering_agent import ClusteringAgent
from reportfusion.models.pipeline import ClusteringContext
from reportfusion.models.reports import ReportStore

# 0 and 4 are core at min 4; 1-3 are neighbours of both but core of neither
SHARED_BORDER = np.array(
    [
        [1.0, 0.9, 0.9, 0.9, 0.0],
        [0.9, 1.0, 0.0, 0.0, 0.9],
        [0.9, 0.0, 1.0, 0.0, 0.9],
        [0.9, 0.0, 0.0, 1.0, 0.9],
        [0.0, 0.9, 0.9, 0.9, 1.0],
    ]
)


class TestClusteringAgent:
    def test_undersized_group_is_orphaned(self, report_factory, now, id_factory, monkeypatch):
        """A singleton density group below min_submissions becomes an orphan."""
        monkeypatch.setattr(
            "reportfusion.agents.clustering_agent.build_similarity_matrix",
            lambda reports, config, cancel=None: SHARED_BORDER,
        )
        reports = [report_factory(f"r{i}", hours=i) for i in range(5)]
        context = ClusteringContext(
            config=ClusteringConfig(max_workers=1, min_submissions=4),
            run_id="agent_test",
            now=now,
            store=ReportStore(reports),
            reports=reports,
            id_factory=id_factory,
        )

        outcome = ClusteringAgent().run(context)

        (cluster,) = outcome.clusters
        assert cluster.member_ids == ["r0", "r1", "r2", "r3"]
        assert [r.report_id for r in outcome.orphaned] == ["r4"]
        assert cluster.submission_count + len(outcome.orphaned) == len(reports)
        assert outcome.metrics.total_clusters == 1
        assert outcome.metrics.clustering_accuracy == 0.8
