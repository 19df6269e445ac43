"""Similarity score model for ReportFusion."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass(frozen=True)
class SimilarityScore:
    """Per-component and overall similarity between two reports, each in [0, 1]."""

    semantic: float = 0.0
    geographic: float = 0.0
    temporal: float = 0.0
    categorical: float = 0.0
    severity: float = 0.0
    overall: float = 0.0

    @classmethod
    def identical(cls) -> "SimilarityScore":
        """Score of a report against itself."""
        return cls(1.0, 1.0, 1.0, 1.0, 1.0, 1.0)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)
