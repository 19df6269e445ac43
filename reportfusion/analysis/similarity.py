"""Multi-factor similarity scoring between two citizen reports.

The overall score is a weighted blend of five components, each in [0, 1]:
semantic (lexical overlap of descriptions), geographic (distance decay),
temporal (linear recency decay), categorical (same or related category) and
severity (ordinal closeness).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from config.defaults import (
    NEUTRAL_COMPONENT_SCORE,
    RELATED_CATEGORY_SCORE,
    SEMANTIC_COSINE_WEIGHT,
    SEMANTIC_ENTITY_WEIGHT,
    SEMANTIC_KEYWORD_WEIGHT,
    SEMANTIC_LENGTH_WEIGHT,
)
from config.settings import ClusteringConfig, SimilarityWeights
from reportfusion.models.reports import IssueCategory, Report, Severity
from reportfusion.models.similarity import SimilarityScore
from reportfusion.utils.date_utils import hours_between
from reportfusion.utils.geo_utils import haversine_km
from reportfusion.utils.text import (
    cosine_similarity,
    extract_entities,
    extract_keywords,
    jaccard,
    length_similarity,
    normalize_text,
)

logger = logging.getLogger(__name__)

_C = IssueCategory

# Directed relations; made symmetric below so scoring is commutative
_CATEGORY_RELATIONS: Dict[str, tuple] = {
    _C.INFRASTRUCTURE: (_C.ENVIRONMENT, _C.SAFETY),
    _C.ENVIRONMENT: (_C.INFRASTRUCTURE, _C.HEALTH),
    _C.SAFETY: (_C.INFRASTRUCTURE, _C.GOVERNANCE),
    _C.HEALTH: (_C.ENVIRONMENT, _C.SAFETY),
    _C.EDUCATION: (_C.SOCIAL, _C.GOVERNANCE),
    _C.GOVERNANCE: (_C.SAFETY, _C.EDUCATION, _C.SOCIAL),
    _C.SOCIAL: (_C.EDUCATION, _C.GOVERNANCE),
    _C.OTHER: (),
}


def _symmetrize(relations: Dict[str, tuple]) -> Dict[str, FrozenSet[str]]:
    related: Dict[str, set] = {cat: set() for cat in relations}
    for cat, others in relations.items():
        for other in others:
            related[cat].add(other)
            related.setdefault(other, set()).add(cat)
    return {cat: frozenset(others) for cat, others in related.items()}


RELATED_CATEGORIES: Dict[str, FrozenSet[str]] = _symmetrize(_CATEGORY_RELATIONS)


def categories_related(category_a: Optional[str], category_b: Optional[str]) -> bool:
    """True when two categories are equal or listed as related."""
    if not category_a or not category_b:
        return False
    if category_a == category_b:
        return True
    return category_b in RELATED_CATEGORIES.get(category_a, frozenset())


@dataclass(frozen=True)
class TextFeatures:
    """Normalized description plus the lexical features derived from it."""

    normalized: str
    keywords: FrozenSet[str]
    entities: FrozenSet[str]

    @classmethod
    def from_text(cls, text: str) -> "TextFeatures":
        normalized = normalize_text(text)
        return cls(
            normalized=normalized,
            keywords=frozenset(extract_keywords(normalized)),
            entities=frozenset(extract_entities(normalized)),
        )


# ── Component scores ──────────────────────────────────────────────────────────

def semantic_similarity(
    text_a: str,
    text_b: str,
    features_a: Optional[TextFeatures] = None,
    features_b: Optional[TextFeatures] = None,
) -> float:
    """Lexical similarity of two descriptions.

    Blends keyword Jaccard, term-frequency cosine, length ratio and entity
    Jaccard. Two descriptions that are both empty after normalization score 0.

    Args:
        text_a: First description.
        text_b: Second description.
        features_a: Precomputed features of text_a (computed if omitted).
        features_b: Precomputed features of text_b (computed if omitted).

    Returns:
        Semantic similarity in [0, 1].
    """
    fa = features_a or TextFeatures.from_text(text_a)
    fb = features_b or TextFeatures.from_text(text_b)
    if not fa.normalized and not fb.normalized:
        return 0.0

    score = (
        jaccard(fa.keywords, fb.keywords) * SEMANTIC_KEYWORD_WEIGHT
        + cosine_similarity(fa.normalized, fb.normalized) * SEMANTIC_COSINE_WEIGHT
        + length_similarity(fa.normalized, fb.normalized) * SEMANTIC_LENGTH_WEIGHT
        + jaccard(fa.entities, fb.entities) * SEMANTIC_ENTITY_WEIGHT
    )
    return _clamp(score)


def geographic_similarity(a: Report, b: Report, max_distance_km: float) -> float:
    """Exponential distance decay; 0 if either side lacks valid coordinates."""
    coords_a, coords_b = a.coordinates, b.coordinates
    if coords_a is None or coords_b is None:
        logger.debug(
            "No usable coordinates for %s/%s; geographic component is 0",
            a.report_id,
            b.report_id,
        )
        return 0.0
    distance = haversine_km(coords_a[0], coords_a[1], coords_b[0], coords_b[1])
    if distance >= max_distance_km:
        return 0.0
    return _clamp(math.exp(-distance / (max_distance_km / 3.0)))


def temporal_similarity(a: Report, b: Report, window_hours: float) -> float:
    """Linear decay from 1 at zero gap to 0 at the window edge."""
    elapsed = hours_between(a.created_at, b.created_at)
    if elapsed >= window_hours:
        return 0.0
    return _clamp(1.0 - elapsed / window_hours)


def categorical_similarity(category_a: Optional[str], category_b: Optional[str]) -> float:
    if not category_a or not category_b:
        return NEUTRAL_COMPONENT_SCORE
    if category_a == category_b:
        return 1.0
    if category_b in RELATED_CATEGORIES.get(category_a, frozenset()):
        return RELATED_CATEGORY_SCORE
    return 0.0


def severity_similarity(severity_a: Optional[str], severity_b: Optional[str]) -> float:
    rank_a, rank_b = Severity.rank(severity_a), Severity.rank(severity_b)
    if rank_a is None or rank_b is None:
        return NEUTRAL_COMPONENT_SCORE
    max_gap = len(Severity.LEVELS) - 1
    return max(0.0, 1.0 - abs(rank_a - rank_b) / max_gap)


# ── Overall score ─────────────────────────────────────────────────────────────

def score_similarity(
    a: Report,
    b: Report,
    config: ClusteringConfig,
    weights: Optional[SimilarityWeights] = None,
    features_a: Optional[TextFeatures] = None,
    features_b: Optional[TextFeatures] = None,
) -> SimilarityScore:
    """Compute the multi-factor similarity between two reports.

    Commutative: score_similarity(a, b) == score_similarity(b, a). A report
    compared with itself (same report_id) scores 1.0 on every component.

    Args:
        a: First report.
        b: Second report.
        config: Clustering configuration (distance cutoff, temporal window).
        weights: Component weights; defaults to config.similarity_weights.
        features_a: Optional precomputed text features of a.
        features_b: Optional precomputed text features of b.

    Returns:
        SimilarityScore with five components and the weighted overall score.
    """
    if a.report_id == b.report_id:
        return SimilarityScore.identical()

    w = weights or config.similarity_weights

    semantic = semantic_similarity(a.description, b.description, features_a, features_b)
    geographic = geographic_similarity(a, b, config.max_distance_km)
    temporal = temporal_similarity(a, b, config.temporal_window_hours)
    categorical = categorical_similarity(a.category, b.category)
    severity = severity_similarity(a.severity, b.severity)

    overall = (
        semantic * w.semantic
        + geographic * w.geographic
        + temporal * w.temporal
        + categorical * w.categorical
        + severity * w.severity
    )

    return SimilarityScore(
        semantic=semantic,
        geographic=geographic,
        temporal=temporal,
        categorical=categorical,
        severity=severity,
        overall=_clamp(overall),
    )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
