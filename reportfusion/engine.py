"""ReportFusion engine: public operations.

Every operation returns an OperationResult and never raises. Failures are
logged with a traceback and converted into a typed failure carrying a
user-facing (Indonesian) message plus the underlying error in ``issues``.

Usage:
    from reportfusion.engine import cluster_reports, rank_clusters

    result = cluster_reports(reports)
    if result.success:
        ranked = rank_clusters(result.data.clusters)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from config.settings import ClusteringConfig, SimilarityWeights
from reportfusion.agents.clustering_agent import ClusteringAgent
from reportfusion.agents.maintenance_agent import MaintenanceAgent
from reportfusion.agents.ranking_agent import RankingAgent
from reportfusion.analysis.similarity import score_similarity
from reportfusion.analysis.similarity_matrix import build_similarity_matrix
from reportfusion.models.cluster import Cluster
from reportfusion.models.pipeline import CancellationToken, ClusteringContext, OperationCancelled
from reportfusion.models.reports import Report, ReportStore
from reportfusion.models.results import (
    ClusteringOutcome,
    ClusterRecommendation,
    ErrorKind,
    OperationResult,
    UpdateOutcome,
)
from reportfusion.models.similarity import SimilarityScore
from reportfusion.utils.date_utils import ensure_utc, utc_now
from reportfusion.utils.logging_utils import get_run_logger

logger = logging.getLogger(__name__)

_MSG_SIMILARITY = "Gagal menghitung kemiripan laporan"
_MSG_MATRIX = "Gagal menghitung matriks kemiripan"
_MSG_CLUSTER = "Gagal mengelompokkan laporan"
_MSG_UPDATE = "Gagal memperbarui pengelompokan"
_MSG_RANK = "Gagal membuat rekomendasi pengelompokan"
_MSG_CANCELLED = "Operasi dibatalkan"
_MSG_DUPLICATE = "Terdapat laporan dengan ID ganda"


def _make_run_id(kind: str, now: datetime) -> str:
    """Sortable run id of the form ``<kind>_YYYYMMDD_HHMMSS``."""
    return f"{kind}_{now.strftime('%Y%m%d_%H%M%S')}"


def _failure(message: str, exc: BaseException, operation: str) -> OperationResult:
    if isinstance(exc, OperationCancelled):
        logger.warning("%s cancelled: %s", operation, exc)
        return OperationResult.failure(_MSG_CANCELLED, [str(exc)], ErrorKind.CANCELLED)
    logger.error("%s failed: %s", operation, exc, exc_info=True)
    return OperationResult.failure(message, [str(exc) or type(exc).__name__])


def _duplicate_ids(reports: Sequence[Report]) -> List[str]:
    seen, duplicates = set(), []
    for report in reports:
        if report.report_id in seen and report.report_id not in duplicates:
            duplicates.append(report.report_id)
        seen.add(report.report_id)
    return duplicates


def similarity(
    report_a: Report,
    report_b: Report,
    config: Optional[ClusteringConfig] = None,
    weights: Optional[SimilarityWeights] = None,
) -> OperationResult[SimilarityScore]:
    """Score two reports against each other."""
    try:
        cfg = config or ClusteringConfig()
        return OperationResult.ok(score_similarity(report_a, report_b, cfg, weights))
    except Exception as exc:
        return _failure(_MSG_SIMILARITY, exc, "similarity")


def similarity_matrix(
    reports: Sequence[Report],
    config: Optional[ClusteringConfig] = None,
    cancel: Optional[CancellationToken] = None,
) -> OperationResult[List[List[float]]]:
    """Pairwise overall-similarity matrix as nested lists (row i = reports[i])."""
    try:
        cfg = config or ClusteringConfig()
        matrix = build_similarity_matrix(list(reports), cfg, cancel=cancel)
        return OperationResult.ok(matrix.tolist())
    except Exception as exc:
        return _failure(_MSG_MATRIX, exc, "similarity_matrix")


def cluster_reports(
    reports: Sequence[Report],
    config: Optional[ClusteringConfig] = None,
    cancel: Optional[CancellationToken] = None,
    now: Optional[datetime] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> OperationResult[ClusteringOutcome]:
    """Cluster a batch of reports from scratch.

    Args:
        reports: Report batch; order determines clustering order.
        config: Clustering configuration (fresh defaults if omitted).
        cancel: Optional cancellation token.
        now: Reference time for priorities and timestamps (defaults to now, UTC).
        id_factory: Callable producing new cluster ids.

    Returns:
        OperationResult whose data is a ClusteringOutcome. Batches smaller than
        min_submissions succeed with no clusters and a warning.
    """
    try:
        cfg = config or ClusteringConfig()
        batch = list(reports)
        duplicates = _duplicate_ids(batch)
        if duplicates:
            return OperationResult.failure(
                _MSG_DUPLICATE,
                [f"Duplicate report id: {rid}" for rid in duplicates],
                ErrorKind.INVALID_INPUT,
            )

        reference = ensure_utc(now) if now is not None else utc_now()
        context = ClusteringContext(
            config=cfg,
            run_id=_make_run_id("batch", reference),
            now=reference,
            store=ReportStore(batch),
            reports=batch,
            cancel=cancel,
            id_factory=id_factory,
        )
        run_log = get_run_logger(__name__, context.run_id)
        run_log.info("Clustering %d reports", len(batch))

        outcome = ClusteringAgent()._run_timed(context)
        context.clustering_result = outcome
        return OperationResult.ok(outcome, warnings=context.warnings)
    except Exception as exc:
        return _failure(_MSG_CLUSTER, exc, "cluster_reports")


def update_clusters(
    existing_clusters: Sequence[Cluster],
    new_reports: Sequence[Report],
    store: ReportStore,
    config: Optional[ClusteringConfig] = None,
    orphaned: Optional[Sequence[Report]] = None,
    now: Optional[datetime] = None,
    id_factory: Optional[Callable[[], str]] = None,
    cancel: Optional[CancellationToken] = None,
) -> OperationResult[UpdateOutcome]:
    """Fold new reports into existing clusters.

    Args:
        existing_clusters: Current clusters; never modified.
        new_reports: Reports to assign, in arrival order.
        store: Store resolving every existing member id; never modified.
        config: Clustering configuration (fresh defaults if omitted).
        orphaned: Orphans carried over from the previous pass.
        now: Reference time for priorities and timestamps.
        id_factory: Callable producing new cluster ids.
        cancel: Optional cancellation token.

    Returns:
        OperationResult whose data is an UpdateOutcome.
    """
    try:
        cfg = config or ClusteringConfig()
        reference = ensure_utc(now) if now is not None else utc_now()

        working_store = store.copy()
        try:
            working_store.extend(orphaned or [])
            working_store.extend(new_reports)
        except ValueError as exc:
            return OperationResult.failure(_MSG_DUPLICATE, [str(exc)], ErrorKind.INVALID_INPUT)

        context = ClusteringContext(
            config=cfg,
            run_id=_make_run_id("update", reference),
            now=reference,
            store=working_store,
            reports=list(new_reports),
            existing_clusters=list(existing_clusters),
            orphaned=list(orphaned or []),
            cancel=cancel,
            id_factory=id_factory,
        )
        outcome = MaintenanceAgent()._run_timed(context)
        context.maintenance_result = outcome
        return OperationResult.ok(outcome, warnings=context.warnings)
    except Exception as exc:
        return _failure(_MSG_UPDATE, exc, "update_clusters")


def rank_clusters(
    clusters: Sequence[Cluster],
    now: Optional[datetime] = None,
) -> OperationResult[List[ClusterRecommendation]]:
    """Recommendations for the given clusters, highest priority first."""
    try:
        reference = ensure_utc(now) if now is not None else utc_now()
        context = ClusteringContext(
            config=ClusteringConfig(),
            run_id=_make_run_id("rank", reference),
            now=reference,
            existing_clusters=list(clusters),
        )
        context.recommendations = RankingAgent()._run_timed(context)
        return OperationResult.ok(context.recommendations)
    except Exception as exc:
        return _failure(_MSG_RANK, exc, "rank_clusters")
