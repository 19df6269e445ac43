"""Shared pytest fixtures for ReportFusion tests.

- Fixture data lives in tests/fixtures/ as static JSON files
- The three sample reports are two near-identical road-damage reports
  (sub1, sub2, ~30 m and 1 h apart) and one rubbish report (sub3) ~4 km away
- Every test that needs a clock gets the fixed ``now`` fixture
"""

from __future__ import annotations

import itertools
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from config.settings import ClusteringConfig
from reportfusion.io.persistence import report_from_dict
from reportfusion.models.reports import Location, Report, ReportStore

_FIXTURES_DIR = Path(__file__).parent / "fixtures"

T0 = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


# ── Raw fixture data loaders ─────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def reports_raw() -> List[Dict[str, Any]]:
    """Raw report records loaded from fixture JSON."""
    with open(_FIXTURES_DIR / "sample_reports.json", encoding="utf-8") as f:
        return json.load(f)


# ── Model object fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def sample_reports(reports_raw) -> List[Report]:
    """[sub1, sub2, sub3] as Report objects."""
    return [report_from_dict(record) for record in reports_raw]


@pytest.fixture
def report_a(sample_reports) -> Report:
    return sample_reports[0]


@pytest.fixture
def report_b(sample_reports) -> Report:
    return sample_reports[1]


@pytest.fixture
def report_c(sample_reports) -> Report:
    return sample_reports[2]


@pytest.fixture
def sample_store(sample_reports) -> ReportStore:
    return ReportStore(sample_reports)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time one hour after the last sample report."""
    return T0 + timedelta(days=1, hours=1)


@pytest.fixture
def test_config() -> ClusteringConfig:
    """Default configuration pinned to a single worker thread."""
    return ClusteringConfig(max_workers=1)


@pytest.fixture
def id_factory():
    """Deterministic cluster ids: cluster_1, cluster_2, ..."""
    counter = itertools.count(1)
    return lambda: f"cluster_{next(counter)}"


# ── Builders ─────────────────────────────────────────────────────────────────────

def make_report(
    report_id: str,
    description: str = "Jalan rusak parah di depan rumah",
    lat: float = -6.2088,
    lng: float = 106.8456,
    hours: float = 0.0,
    category: str = "INFRASTRUCTURE",
    severity: str = "HIGH",
    quality_score: float = None,
    urgency: float = None,
    village: str = "",
) -> Report:
    """Report builder used across unit and integration tests."""
    return Report(
        report_id=report_id,
        description=description,
        created_at=T0 + timedelta(hours=hours),
        location=Location(lat=lat, lng=lng, village=village),
        category=category,
        severity=severity,
        quality_score=quality_score,
        urgency=urgency,
    )


@pytest.fixture
def report_factory():
    return make_report
