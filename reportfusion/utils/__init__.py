"""ReportFusion utilities package.

Stateless helpers with no side effects beyond logging configuration.
"""

from reportfusion.utils.date_utils import ensure_utc, parse_timestamp
from reportfusion.utils.geo_utils import SpatialGrid, haversine_km, is_valid_coordinate
from reportfusion.utils.text import extract_entities, extract_keywords, normalize_text

__all__ = [
    "ensure_utc",
    "parse_timestamp",
    "SpatialGrid",
    "haversine_km",
    "is_valid_coordinate",
    "extract_entities",
    "extract_keywords",
    "normalize_text",
]
