"""Integration tests for the ReportFusion engine operations.

These tests run the public operations end-to-end on fixture data:

- similarity / similarity_matrix on the sample reports
- cluster_reports: one road-damage cluster plus an orphaned rubbish report
- update_clusters: joining, forming new clusters from orphans, empty batches
- rank_clusters on the output of both
- Failure modes: duplicate ids, cancellation, unresolvable members

Every result is an OperationResult; none of these calls may raise.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from config.settings import ClusteringConfig
from reportfusion import engine
from reportfusion.engine import (
    cluster_reports,
    rank_clusters,
    similarity,
    similarity_matrix,
    update_clusters,
)
from reportfusion.io.persistence import cluster_from_dict, cluster_to_dict
from reportfusion.models.cluster import Cluster
from reportfusion.models.pipeline import CancellationToken
from reportfusion.models.reports import ReportStore
from reportfusion.models.results import ErrorKind

pytestmark = pytest.mark.integration


# ── Helpers ───────────────────────────────────────────────────────────────────────

@pytest.fixture
def batch_result(sample_reports, test_config, now, id_factory):
    result = cluster_reports(sample_reports, config=test_config, now=now, id_factory=id_factory)
    assert result.success, result.issues
    return result


# ── similarity / similarity_matrix ────────────────────────────────────────────────

class TestSimilarityOperations:
    def test_similarity(self, report_a, report_b, test_config):
        result = similarity(report_a, report_b, test_config)
        assert result.success
        assert result.data.overall == pytest.approx(0.69, abs=0.01)

    def test_similarity_default_config(self, report_a, report_c):
        result = similarity(report_a, report_c)
        assert result.success
        assert result.data.overall < 0.6

    def test_matrix(self, sample_reports, test_config):
        result = similarity_matrix(sample_reports, test_config)
        assert result.success
        matrix = result.data
        assert len(matrix) == 3
        assert [matrix[i][i] for i in range(3)] == [1.0, 1.0, 1.0]
        assert matrix[0][1] == matrix[1][0]
        assert matrix[0][1] >= 0.6 > matrix[0][2]

    def test_empty_matrix(self, test_config):
        result = similarity_matrix([], test_config)
        assert result.success
        assert result.data == []

    def test_cancelled_matrix(self, sample_reports, test_config):
        token = CancellationToken()
        token.cancel()
        result = similarity_matrix(sample_reports, test_config, cancel=token)
        assert not result.success
        assert result.error_kind == ErrorKind.CANCELLED
        assert result.error == "Operasi dibatalkan"


# ── cluster_reports ───────────────────────────────────────────────────────────────

class TestClusterReports:
    def test_sample_batch(self, batch_result):
        outcome = batch_result.data
        (cluster,) = outcome.clusters
        assert cluster.cluster_id == "cluster_1"
        assert cluster.member_ids == ["sub1", "sub2"]
        assert cluster.name == "Infrastruktur - Karet"
        assert [r.report_id for r in outcome.orphaned] == ["sub3"]
        assert batch_result.warnings == []

    def test_metrics(self, batch_result):
        metrics = batch_result.data.metrics
        assert metrics.total_clusters == 1
        assert metrics.avg_cluster_size == 2.0
        assert metrics.clustering_accuracy == 0.67
        assert metrics.processing_time_ms >= 0.0

    def test_every_report_accounted_for_once(self, batch_result, sample_reports):
        outcome = batch_result.data
        placed = [rid for c in outcome.clusters for rid in c.member_ids]
        placed += [r.report_id for r in outcome.orphaned]
        assert sorted(placed) == sorted(r.report_id for r in sample_reports)

    def test_outcome_store_resolves_members(self, batch_result):
        outcome = batch_result.data
        for cluster in outcome.clusters:
            assert len(outcome.store.resolve(cluster.member_ids)) == cluster.submission_count

    def test_deterministic(self, sample_reports, test_config, now, id_factory):
        first = cluster_reports(sample_reports, config=test_config, now=now, id_factory=id_factory)
        counter = iter(range(1, 100))
        second = cluster_reports(
            sample_reports,
            config=test_config,
            now=now,
            id_factory=lambda: f"cluster_{next(counter)}",
        )
        assert [cluster_to_dict(c) for c in first.data.clusters] == [
            cluster_to_dict(c) for c in second.data.clusters
        ]

    def test_too_few_reports(self, sample_reports, now):
        config = ClusteringConfig(max_workers=1, min_submissions=5)
        result = cluster_reports(sample_reports, config=config, now=now)
        assert result.success
        assert result.data.clusters == []
        assert len(result.data.orphaned) == 3
        assert len(result.warnings) == 1

    def test_empty_batch(self, test_config, now):
        result = cluster_reports([], config=test_config, now=now)
        assert result.success
        assert result.data.clusters == []
        assert result.data.metrics.clustering_accuracy == 0.0

    def test_duplicate_ids_rejected(self, sample_reports, test_config, now):
        result = cluster_reports(sample_reports + [sample_reports[0]], config=test_config, now=now)
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_INPUT
        assert result.issues == ["Duplicate report id: sub1"]

    def test_cancelled(self, sample_reports, test_config):
        result = cluster_reports(sample_reports, config=test_config, cancel=CancellationToken(timeout_seconds=0))
        assert not result.success
        assert result.error_kind == ErrorKind.CANCELLED

    def test_internal_failure_becomes_result(self, sample_reports, test_config, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            "reportfusion.agents.clustering_agent.build_similarity_matrix", explode
        )
        result = cluster_reports(sample_reports, config=test_config)
        assert not result.success
        assert result.error == "Gagal mengelompokkan laporan"
        assert result.error_kind == ErrorKind.COMPUTATION_FAILURE
        assert result.issues == ["boom"]

    def test_default_ids(self, sample_reports, test_config):
        result = cluster_reports(sample_reports, config=test_config)
        (cluster,) = result.data.clusters
        assert cluster.cluster_id.startswith("cluster_")
        assert len(cluster.cluster_id) == len("cluster_") + 12


# ── update_clusters ───────────────────────────────────────────────────────────────

class TestUpdateClusters:
    def test_new_reports_join_and_form_clusters(self, batch_result, report_factory, test_config, now, id_factory):
        outcome = batch_result.data
        pothole = report_factory("subD", description="Jalan rusak parah di depan rumah saya", hours=30)
        rubbish = dict(lat=-6.30, lng=106.75, category="ENVIRONMENT", severity="MEDIUM", hours=60)
        e = report_factory("subE", description="Sampah menumpuk di pinggir jalan", **rubbish)
        f = report_factory("subF", description="Sampah menumpuk di pinggir jalan raya", **rubbish)
        later = now + timedelta(hours=8)

        result = update_clusters(
            outcome.clusters,
            [pothole, e, f],
            outcome.store,
            config=test_config,
            orphaned=outcome.orphaned,
            now=later,
            id_factory=id_factory,
        )

        assert result.success, result.issues
        update = result.data
        (road,) = update.updated_clusters
        assert road.member_ids == ["sub1", "sub2", "subD"]
        (created,) = update.new_clusters
        assert created.cluster_id == "cluster_2"
        assert created.member_ids == ["subF", "subE"]
        assert [r.report_id for r in update.orphaned] == ["sub3"]
        # Caller's clusters and store untouched
        assert outcome.clusters[0].member_ids == ["sub1", "sub2"]
        assert "subD" not in outcome.store

    def test_empty_update_returns_input(self, batch_result, test_config, now):
        outcome = batch_result.data
        result = update_clusters(
            outcome.clusters, [], outcome.store, config=test_config, orphaned=outcome.orphaned, now=now
        )
        assert result.success
        assert result.data.updated_clusters == outcome.clusters
        assert result.data.updated_clusters[0] is not outcome.clusters[0]
        assert result.data.new_clusters == []
        assert result.data.orphaned == outcome.orphaned

    def test_after_persistence_round_trip(self, batch_result, report_factory, test_config, now):
        """Clusters reloaded from JSON plus a rebuilt store behave like the originals."""
        outcome = batch_result.data
        reloaded = [cluster_from_dict(cluster_to_dict(c)) for c in outcome.clusters]
        store = ReportStore(list(outcome.store))
        newcomer = report_factory("subD", hours=5)

        result = update_clusters(reloaded, [newcomer], store, config=test_config, now=now)

        assert result.success
        assert result.data.updated_clusters[0].member_ids == ["sub1", "sub2", "subD"]

    def test_already_clustered_report_reported_as_warning(self, batch_result, report_a, test_config, now):
        outcome = batch_result.data
        result = update_clusters(outcome.clusters, [report_a], outcome.store, config=test_config, now=now)
        assert result.success
        assert result.warnings == ["Report sub1 is already clustered; skipping"]
        assert result.data.updated_clusters[0].member_ids == ["sub1", "sub2"]

    def test_conflicting_report_id_rejected(self, batch_result, report_factory, test_config, now):
        outcome = batch_result.data
        impostor = report_factory("sub1", description="Banjir besar")
        result = update_clusters(outcome.clusters, [impostor], outcome.store, config=test_config, now=now)
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_INPUT

    def test_unresolvable_member_is_failure(self, report_factory, test_config, now):
        ghost = Cluster(cluster_id="ghost", member_ids=["missing"])
        result = update_clusters(
            [ghost], [report_factory("r1")], ReportStore(), config=test_config, now=now
        )
        assert not result.success
        assert result.error == "Gagal memperbarui pengelompokan"
        assert result.error_kind == ErrorKind.COMPUTATION_FAILURE
        assert result.issues


# ── rank_clusters ─────────────────────────────────────────────────────────────────

class TestRankClusters:
    def test_rank_batch_output(self, batch_result, now):
        result = rank_clusters(batch_result.data.clusters, now=now)
        assert result.success
        (rec,) = result.data
        assert rec.priority == 7
        assert rec.urgency_level == "high"
        assert rec.recommended_actions[0] == "Koordinasi dengan Dinas Pekerjaan Umum"

    def test_rank_matches_aggregate_priority_at_same_time(self, batch_result, now):
        cluster = batch_result.data.clusters[0]
        (rec,) = rank_clusters([cluster], now=now).data
        assert rec.priority == cluster.priority_rank

    def test_rank_empty(self):
        result = rank_clusters([])
        assert result.success
        assert result.data == []

    def test_rank_failure_becomes_result(self, monkeypatch):
        def explode(*args, **kwargs):
            raise ValueError("bad cluster")

        monkeypatch.setattr(engine.RankingAgent, "run", explode)
        result = rank_clusters([Cluster(cluster_id="c")])
        assert not result.success
        assert result.error == "Gagal membuat rekomendasi pengelompokan"
