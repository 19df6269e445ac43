"""Density-based (DBSCAN-style) grouping over a precomputed similarity matrix.

Similarity plays the role of distance: q is a neighbour of p when
matrix[p][q] >= threshold. The diagonal is 1.0, so every point is its own
neighbour and ``min_points`` counts the point itself, as in standard DBSCAN.

Ordering is fixed for reproducible output: points are visited by index,
neighbours are listed in ascending index order, and expansion is FIFO.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional

import numpy as np

from reportfusion.models.pipeline import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

UNASSIGNED = -1


def find_neighbors(matrix: np.ndarray, point: int, threshold: float) -> List[int]:
    """Indices q with matrix[point][q] >= threshold, ascending (includes point)."""
    return [int(q) for q in np.flatnonzero(matrix[point] >= threshold)]


def dbscan_assignments(
    matrix: np.ndarray,
    threshold: float,
    min_points: int,
    cancel: Optional[CancellationToken] = None,
) -> List[int]:
    """Assign a cluster id to every point, or UNASSIGNED (-1) for noise.

    A point with fewer than ``min_points`` neighbours opens no cluster, but can
    still be absorbed as a border point while another cluster expands.

    Args:
        matrix: Symmetric n×n similarity matrix with 1.0 on the diagonal.
        threshold: Neighbourhood cutoff in similarity space.
        min_points: Minimum neighbourhood size of a core point.
        cancel: Optional cancellation token, checked before each expansion.

    Returns:
        List of length n with cluster ids 0, 1, 2, ... in order of creation.

    Raises:
        OperationCancelled: If the token fires between expansions.
    """
    matrix = np.asarray(matrix, dtype=float)
    n = matrix.shape[0] if matrix.ndim == 2 else 0
    assignments = [UNASSIGNED] * n
    cluster_id = 0

    for point in range(n):
        if assignments[point] != UNASSIGNED:
            continue
        neighbors = find_neighbors(matrix, point, threshold)
        if len(neighbors) < min_points:
            continue

        check_cancelled(cancel, "cluster expansion")
        assignments[point] = cluster_id
        queue = deque(neighbors)
        while queue:
            current = queue.popleft()
            if assignments[current] != UNASSIGNED:
                continue
            assignments[current] = cluster_id
            current_neighbors = find_neighbors(matrix, current, threshold)
            if len(current_neighbors) >= min_points:
                queue.extend(q for q in current_neighbors if assignments[q] == UNASSIGNED)

        cluster_id += 1

    unassigned = assignments.count(UNASSIGNED)
    logger.debug(
        "Density grouping: %d points, %d clusters, %d unassigned",
        n,
        cluster_id,
        unassigned,
    )
    return assignments


def group_assignments(assignments: List[int]) -> List[List[int]]:
    """Group point indices by cluster id, clusters in first-seen order.

    Unassigned points are omitted. Member indices stay in ascending order.
    """
    groups: Dict[int, List[int]] = {}
    for index, cluster_id in enumerate(assignments):
        if cluster_id == UNASSIGNED:
            continue
        groups.setdefault(cluster_id, []).append(index)
    return list(groups.values())
