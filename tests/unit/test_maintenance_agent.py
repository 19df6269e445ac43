"""Unit tests for MaintenanceAgent (incremental cluster maintenance).

Covers:
- Joining an existing cluster and rebuilding its aggregates
- Forming a new cluster from a new report plus matching orphans
- first_match vs. best_match assignment
- Reports that are already clustered
- Joining clusters opened in the same pass only when enabled
- Caller's clusters are never modified
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from config.settings import ClusteringConfig
from reportfusion.agents.maintenance_agent import MaintenanceAgent
from reportfusion.analysis.aggregation import aggregate_cluster
from reportfusion.models.pipeline import CancellationToken, ClusteringContext, OperationCancelled
from reportfusion.models.reports import ReportStore

# Lamp-outage hot spots ~1 km apart along the same meridian
_NORTH = (-6.2088, 106.8456)
_SOUTH = (-6.2178, 106.8456)
_LAMP = "Lampu jalan mati total"


# ── Helpers ───────────────────────────────────────────────────────────────────────

def _context(config, now, store, clusters, new_reports, orphaned=None, id_factory=None, cancel=None):
    return ClusteringContext(
        config=config,
        run_id="update_test",
        now=now,
        store=store,
        reports=list(new_reports),
        existing_clusters=list(clusters),
        orphaned=list(orphaned or []),
        id_factory=id_factory,
        cancel=cancel,
    )


@pytest.fixture
def road_cluster(report_a, report_b, test_config, now):
    return aggregate_cluster("cluster_road", [report_a, report_b], test_config, now)


@pytest.fixture
def lamp_setup(report_factory, test_config, now):
    """Two lamp-outage clusters, north first, and a store resolving their members."""
    members = {
        "north": [
            report_factory(f"n{i}", description=_LAMP, lat=_NORTH[0], lng=_NORTH[1], hours=i)
            for i in range(2)
        ],
        "south": [
            report_factory(f"s{i}", description=_LAMP, lat=_SOUTH[0], lng=_SOUTH[1], hours=i)
            for i in range(2)
        ],
    }
    clusters = [
        aggregate_cluster(f"cluster_{name}", reports, test_config, now)
        for name, reports in members.items()
    ]
    store = ReportStore(members["north"] + members["south"])
    return clusters, store


# ── Tests ─────────────────────────────────────────────────────────────────────────

class TestJoinExisting:
    def test_similar_report_joins(self, road_cluster, sample_store, report_factory, test_config, now):
        newcomer = report_factory("sub4", description="Jalan rusak parah di depan rumah saya", hours=30)
        store = sample_store.copy()
        store.add(newcomer)
        later = now + timedelta(hours=6)

        outcome = MaintenanceAgent().run(
            _context(test_config, later, store, [road_cluster], [newcomer])
        )

        assert outcome.new_clusters == []
        assert outcome.orphaned == []
        (updated,) = outcome.updated_clusters
        assert updated.member_ids == ["sub1", "sub2", "sub4"]
        assert updated.cluster_id == "cluster_road"
        assert updated.created_at == road_cluster.created_at
        assert updated.updated_at == later
        assert updated.last_reported == newcomer.created_at

    def test_input_clusters_not_modified(self, road_cluster, sample_store, report_factory, test_config, now):
        newcomer = report_factory("sub4", hours=2)
        store = sample_store.copy()
        store.add(newcomer)
        before = road_cluster.copy()

        MaintenanceAgent().run(_context(test_config, now, store, [road_cluster], [newcomer]))

        assert road_cluster == before

    def test_already_clustered_report_skipped(self, road_cluster, sample_store, report_a, test_config, now):
        context = _context(test_config, now, sample_store, [road_cluster], [report_a])
        outcome = MaintenanceAgent().run(context)

        assert context.warnings == ["Report sub1 is already clustered; skipping"]
        assert outcome.updated_clusters[0].member_ids == ["sub1", "sub2"]
        assert outcome.new_clusters == []
        assert outcome.orphaned == []


class TestOrphanPool:
    def test_dissimilar_report_becomes_orphan(self, road_cluster, sample_store, report_c, test_config, now):
        outcome = MaintenanceAgent().run(
            _context(test_config, now, sample_store, [road_cluster], [report_c])
        )
        assert outcome.orphaned == [report_c]
        assert outcome.new_clusters == []
        assert outcome.updated_clusters[0].member_ids == ["sub1", "sub2"]

    def test_new_cluster_from_orphans(self, road_cluster, sample_store, report_factory, test_config, now, id_factory):
        rubbish = dict(
            lat=-6.30, lng=106.75, category="ENVIRONMENT", severity="MEDIUM", hours=30
        )
        e = report_factory("subE", description="Sampah menumpuk di pinggir jalan", **rubbish)
        f = report_factory("subF", description="Sampah menumpuk di pinggir jalan raya", **rubbish)
        store = sample_store.copy()
        store.extend([e, f])

        outcome = MaintenanceAgent().run(
            _context(test_config, now, store, [road_cluster], [e, f], id_factory=id_factory)
        )

        (created,) = outcome.new_clusters
        assert created.cluster_id == "cluster_1"
        assert created.member_ids == ["subF", "subE"]
        assert created.category == "ENVIRONMENT"
        assert outcome.orphaned == []

    def test_carried_orphan_pairs_with_newcomer(self, report_factory, test_config, now, id_factory):
        old = report_factory("old", description=_LAMP)
        new = report_factory("new", description=_LAMP, hours=4)
        store = ReportStore([old, new])

        outcome = MaintenanceAgent().run(
            _context(test_config, now, store, [], [new], orphaned=[old], id_factory=id_factory)
        )

        (created,) = outcome.new_clusters
        assert created.member_ids == ["new", "old"]
        assert outcome.orphaned == []

    def test_clusters_opened_in_same_pass_not_joined_by_default(self, report_factory, test_config, now, id_factory):
        reports = [report_factory(f"r{i}", description=_LAMP, hours=i) for i in range(3)]
        store = ReportStore(reports)

        outcome = MaintenanceAgent().run(
            _context(test_config, now, store, [], reports, id_factory=id_factory)
        )

        (created,) = outcome.new_clusters
        assert created.member_ids == ["r1", "r0"]
        assert [r.report_id for r in outcome.orphaned] == ["r2"]

    def test_join_new_clusters_lets_later_report_join(self, report_factory, now, id_factory):
        config = ClusteringConfig(max_workers=1, join_new_clusters=True)
        reports = [report_factory(f"r{i}", description=_LAMP, hours=i) for i in range(3)]
        store = ReportStore(reports)

        outcome = MaintenanceAgent().run(
            _context(config, now, store, [], reports, id_factory=id_factory)
        )

        (created,) = outcome.new_clusters
        assert created.member_ids == ["r1", "r0", "r2"]
        assert outcome.orphaned == []

    def test_min_submissions_respected(self, report_factory, now, id_factory):
        config = ClusteringConfig(max_workers=1, min_submissions=3)
        reports = [report_factory(f"r{i}", description=_LAMP, hours=i) for i in range(2)]

        outcome = MaintenanceAgent().run(
            _context(config, now, ReportStore(reports), [], reports, id_factory=id_factory)
        )

        assert outcome.new_clusters == []
        assert [r.report_id for r in outcome.orphaned] == ["r0", "r1"]


class TestAssignmentPolicy:
    def test_first_match_takes_first_qualifying(self, lamp_setup, report_factory, now):
        clusters, store = lamp_setup
        newcomer = report_factory("x", description=_LAMP, lat=_SOUTH[0], lng=_SOUTH[1])
        store.add(newcomer)
        config = ClusteringConfig(max_workers=1, assignment_policy="first_match")

        outcome = MaintenanceAgent().run(_context(config, now, store, clusters, [newcomer]))

        north, south = outcome.updated_clusters
        assert "x" in north.member_ids
        assert "x" not in south.member_ids

    def test_best_match_takes_top_scorer(self, lamp_setup, report_factory, now):
        clusters, store = lamp_setup
        newcomer = report_factory("x", description=_LAMP, lat=_SOUTH[0], lng=_SOUTH[1])
        store.add(newcomer)
        config = ClusteringConfig(max_workers=1, assignment_policy="best_match")

        outcome = MaintenanceAgent().run(_context(config, now, store, clusters, [newcomer]))

        north, south = outcome.updated_clusters
        assert "x" in south.member_ids
        assert "x" not in north.member_ids


class TestCancellation:
    def test_cancelled_before_first_report(self, road_cluster, sample_store, report_c, test_config, now):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            MaintenanceAgent().run(
                _context(test_config, now, sample_store, [road_cluster], [report_c], cancel=token)
            )
