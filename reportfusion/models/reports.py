"""Report data models for ReportFusion.

Defines the immutable citizen report handed to the engine by the upstream
intake flow, its location block, and the ReportStore that clusters resolve
their member ids against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from reportfusion.utils.date_utils import ensure_utc
from reportfusion.utils.geo_utils import is_valid_coordinate


class IssueCategory:
    """Fixed set of report categories."""

    INFRASTRUCTURE = "INFRASTRUCTURE"
    ENVIRONMENT = "ENVIRONMENT"
    SAFETY = "SAFETY"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"
    GOVERNANCE = "GOVERNANCE"
    SOCIAL = "SOCIAL"
    OTHER = "OTHER"

    ALL = (
        INFRASTRUCTURE,
        ENVIRONMENT,
        SAFETY,
        HEALTH,
        EDUCATION,
        GOVERNANCE,
        SOCIAL,
        OTHER,
    )


class Severity:
    """Four-level ordinal severity scale, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    LEVELS = (LOW, MEDIUM, HIGH, CRITICAL)

    @classmethod
    def rank(cls, severity: Optional[str]) -> Optional[int]:
        """Return the ordinal index of a severity, or None if unknown/missing."""
        if not severity:
            return None
        try:
            return cls.LEVELS.index(severity.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Location:
    """Where a report was filed.

    Coordinates are optional; administrative names are enrichment from the
    upstream geocoder (village = kelurahan, sub_district = kecamatan,
    district = kabupaten/kota).
    """

    lat: Optional[float] = None
    lng: Optional[float] = None
    accuracy_m: Optional[float] = None
    address: str = ""
    village: str = ""
    sub_district: str = ""
    district: str = ""
    province: str = ""

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """(lat, lng) when both are present and in range, else None."""
        if self.lat is None or self.lng is None:
            return None
        if not is_valid_coordinate(self.lat, self.lng):
            return None
        return float(self.lat), float(self.lng)

    def area_names(self) -> List[str]:
        """Non-empty administrative names, most local first (province excluded)."""
        return [name for name in (self.village, self.sub_district, self.district) if name]


@dataclass(frozen=True)
class Report:
    """A single citizen issue report. Immutable for the duration of a run."""

    report_id: str
    description: str
    created_at: datetime
    location: Location = field(default_factory=Location)
    category: Optional[str] = None
    severity: Optional[str] = None
    quality_score: Optional[float] = None   # 0–100, from the upstream quality validator
    urgency: Optional[float] = None         # 0–1, from upstream AI enrichment

    def __post_init__(self) -> None:
        if not self.report_id:
            raise ValueError("Report.report_id must be a non-empty string")
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        if self.category:
            object.__setattr__(self, "category", self.category.upper())
        if self.severity:
            object.__setattr__(self, "severity", self.severity.upper())

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        return self.location.coordinates


class ReportStore:
    """Insertion-ordered arena of reports keyed by id.

    Clusters hold member ids only; every aggregate is recomputed by resolving
    those ids here. Re-adding the identical report is a no-op; adding a
    different report under an existing id raises ValueError.
    """

    def __init__(self, reports: Optional[Iterable[Report]] = None) -> None:
        self._reports: Dict[str, Report] = {}
        for report in reports or []:
            self.add(report)

    def add(self, report: Report) -> None:
        existing = self._reports.get(report.report_id)
        if existing is not None:
            if existing != report:
                raise ValueError(f"Duplicate report id with different content: {report.report_id}")
            return
        self._reports[report.report_id] = report

    def extend(self, reports: Iterable[Report]) -> None:
        for report in reports:
            self.add(report)

    def get(self, report_id: str) -> Report:
        """Resolve a report id.

        Raises:
            KeyError: If the id is not in the store.
        """
        try:
            return self._reports[report_id]
        except KeyError:
            raise KeyError(f"Report {report_id!r} is not in the report store") from None

    def resolve(self, report_ids: Iterable[str]) -> List[Report]:
        return [self.get(report_id) for report_id in report_ids]

    def copy(self) -> "ReportStore":
        clone = ReportStore()
        clone._reports = dict(self._reports)
        return clone

    def __contains__(self, report_id: object) -> bool:
        return report_id in self._reports

    def __len__(self) -> int:
        return len(self._reports)

    def __iter__(self) -> Iterator[Report]:
        return iter(self._reports.values())
