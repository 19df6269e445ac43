"""Pairwise similarity matrix over a batch of reports.

Only the upper triangle is scored; each value is mirrored and the diagonal is
1.0. Rows are scored on a thread pool for larger batches. Each row task writes
only cells (i, j) and (j, i) with j > i, so tasks never touch the same cell.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence, Set

import numpy as np

from config.defaults import MATRIX_PARALLEL_MIN_REPORTS
from config.settings import ClusteringConfig, SimilarityWeights
from reportfusion.analysis.similarity import TextFeatures, score_similarity
from reportfusion.models.pipeline import CancellationToken, check_cancelled
from reportfusion.models.reports import Report
from reportfusion.utils.geo_utils import SpatialGrid

logger = logging.getLogger(__name__)

# Grid cells are padded so great-circle shortcuts across a cell corner cannot
# bring a non-adjacent pair under max_distance_km
_GRID_CELL_PADDING = 1.05


def build_similarity_matrix(
    reports: Sequence[Report],
    config: ClusteringConfig,
    cancel: Optional[CancellationToken] = None,
    weights: Optional[SimilarityWeights] = None,
) -> np.ndarray:
    """Build the symmetric n×n overall-similarity matrix.

    Args:
        reports: Reports in batch order; row/column i is reports[i].
        config: Clustering configuration.
        cancel: Optional cancellation token, checked before each row.
        weights: Component weights; defaults to config.similarity_weights.

    Returns:
        float64 array of shape (n, n). Empty input gives shape (0, 0).

    Raises:
        OperationCancelled: If the token fires mid-build.
    """
    n = len(reports)
    matrix = np.zeros((n, n), dtype=float)
    if n == 0:
        return matrix
    np.fill_diagonal(matrix, 1.0)

    w = weights or config.similarity_weights
    features = [TextFeatures.from_text(r.description) for r in reports]
    candidates = _spatial_candidates(reports, config, w)

    def fill_row(i: int) -> int:
        check_cancelled(cancel, "similarity matrix")
        if candidates is None:
            columns = range(i + 1, n)
        else:
            columns = sorted(j for j in candidates[i] if j > i)
        for j in columns:
            score = score_similarity(
                reports[i], reports[j], config, w, features[i], features[j]
            )
            matrix[i, j] = score.overall
            matrix[j, i] = score.overall
        return i

    workers = min(config.max_workers, n)
    if workers <= 1 or n < MATRIX_PARALLEL_MIN_REPORTS:
        for i in range(n):
            fill_row(i)
    else:
        logger.debug("Scoring %d reports on %d worker threads", n, workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(fill_row, i) for i in range(n)]
            try:
                for future in as_completed(futures):
                    future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    logger.debug("Similarity matrix built for %d reports", n)
    return matrix


def _spatial_candidates(
    reports: Sequence[Report],
    config: ClusteringConfig,
    weights: SimilarityWeights,
) -> Optional[List[Set[int]]]:
    """Per-row candidate columns from the spatial grid, or None to score all pairs.

    Skipping a pair is only safe when a pair with zero geographic similarity
    can never reach the threshold: the other four weights, capped at 1.0, must
    stay below it.
    """
    if not config.spatial_prefilter:
        return None
    reachable = min(1.0, weights.total - weights.geographic)
    if config.semantic_similarity_threshold <= reachable:
        logger.debug(
            "Spatial pre-filter skipped: threshold %.2f is reachable without "
            "geographic similarity (up to %.2f)",
            config.semantic_similarity_threshold,
            reachable,
        )
        return None

    points = [r.coordinates for r in reports]
    if not SpatialGrid.supports(points):
        logger.debug("Spatial pre-filter skipped: batch has reports near a pole")
        return None

    grid = SpatialGrid.build(points, config.max_distance_km * _GRID_CELL_PADDING)
    candidates = [grid.candidates(i) for i in range(len(reports))]
    kept = sum(len([j for j in c if j > i]) for i, c in enumerate(candidates))
    total = len(reports) * (len(reports) - 1) // 2
    logger.debug("Spatial pre-filter kept %d of %d report pairs", kept, total)
    return candidates
