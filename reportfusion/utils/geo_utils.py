"""Geographic utility functions for ReportFusion.

Distance, coordinate validation and the grid index used to skip far-apart
report pairs. No I/O.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set, Tuple

_EARTH_RADIUS_KM = 6371.0

# Kilometres per degree of latitude on the haversine sphere
_KM_PER_DEG_LAT = math.pi * _EARTH_RADIUS_KM / 180.0

# Above this latitude longitude columns converge too fast for a flat grid
GRID_MAX_ABS_LAT = 85.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points using the Haversine formula.

    Callers must guard against out-of-range coordinates (see is_valid_coordinate).

    Args:
        lat1: Latitude of first point in decimal degrees.
        lon1: Longitude of first point in decimal degrees.
        lat2: Latitude of second point in decimal degrees.
        lon2: Longitude of second point in decimal degrees.

    Returns:
        Distance in kilometres.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _EARTH_RADIUS_KM * c


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """Check that a latitude/longitude pair is finite and within WGS84 ranges."""
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lon_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lon_f <= 180.0


def mean_coordinate(points: Sequence[Tuple[float, float]]) -> Optional[Tuple[float, float]]:
    """Arithmetic mean of (lat, lon) points, or None for an empty sequence."""
    if not points:
        return None
    lat = sum(p[0] for p in points) / len(points)
    lon = sum(p[1] for p in points) / len(points)
    return lat, lon


class SpatialGrid:
    """Uniform lat/lon bucket index for candidate-pair pre-filtering.

    Cells are at least ``cell_km`` wide in both directions, so any two points
    closer than ``cell_km`` fall in the same or adjacent cells. Longitude
    columns wrap at the antimeridian. Points without coordinates are indexed
    separately and paired with everything.

    The guarantee only holds up to ``GRID_MAX_ABS_LAT``; use ``supports`` to
    check a batch before relying on the grid.
    """

    def __init__(self, cell_km: float, reference_lat: float = 0.0) -> None:
        if cell_km <= 0:
            raise ValueError("cell_km must be positive")
        self.cell_km = cell_km
        self._lat_step = cell_km / _KM_PER_DEG_LAT
        # Longitude degrees shrink with latitude; size cells for the widest
        # latitude in the batch so neighbouring cells always cover cell_km.
        cos_lat = max(math.cos(math.radians(min(abs(reference_lat), GRID_MAX_ABS_LAT))), 1e-6)
        min_lon_step = cell_km / (_KM_PER_DEG_LAT * cos_lat)
        # A whole number of columns around the globe, none narrower than min_lon_step
        self._lon_cols = max(1, int(360.0 // min_lon_step))
        self._lon_step = 360.0 / self._lon_cols
        self._cells: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        self._unlocated: List[int] = []
        self._cell_of: Dict[int, Tuple[int, int]] = {}

    @staticmethod
    def supports(points: Sequence[Optional[Tuple[float, float]]]) -> bool:
        """True when every located point is within the grid's latitude limit."""
        return all(abs(p[0]) <= GRID_MAX_ABS_LAT for p in points if p is not None)

    @classmethod
    def build(
        cls, points: Sequence[Optional[Tuple[float, float]]], cell_km: float
    ) -> "SpatialGrid":
        """Index a sequence of optional (lat, lon) points by their position."""
        located = [abs(p[0]) for p in points if p is not None]
        grid = cls(cell_km, reference_lat=max(located) if located else 0.0)
        for idx, point in enumerate(points):
            grid.insert(idx, point)
        return grid

    def _cell(self, lat: float, lon: float) -> Tuple[int, int]:
        col = math.floor((lon + 180.0) / self._lon_step) % self._lon_cols
        return math.floor(lat / self._lat_step), col

    def insert(self, idx: int, point: Optional[Tuple[float, float]]) -> None:
        if point is None:
            self._unlocated.append(idx)
            return
        cell = self._cell(point[0], point[1])
        self._cells[cell].append(idx)
        self._cell_of[idx] = cell

    def candidates(self, idx: int) -> Set[int]:
        """Indices that could lie within cell_km of ``idx`` (including itself).

        An unlocated point is a candidate of every point and vice versa.
        """
        if idx not in self._cell_of:
            return set(self._cell_of) | set(self._unlocated)
        row, col = self._cell_of[idx]
        found: Set[int] = set(self._unlocated)
        for d_row in (-1, 0, 1):
            for d_col in (-1, 0, 1):
                neighbour = (row + d_row, (col + d_col) % self._lon_cols)
                found.update(self._cells.get(neighbour, ()))
        return found
