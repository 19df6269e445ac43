"""Run-state data models for ReportFusion.

Defines ClusteringContext (shared state threaded through the agents) and the
cooperative cancellation primitives checked by long-running stages.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from config.settings import ClusteringConfig
from reportfusion.models.cluster import Cluster
from reportfusion.models.reports import Report, ReportStore
from reportfusion.models.results import ClusterRecommendation, ClusteringOutcome, UpdateOutcome


class OperationCancelled(Exception):
    """Raised when a CancellationToken is triggered mid-operation."""


class CancellationToken:
    """Cooperative cancellation via an event flag and/or a deadline.

    Args:
        event: Optional externally owned event; setting it cancels the run.
        timeout_seconds: Optional wall-clock limit measured from construction.
    """

    def __init__(
        self,
        event: Optional[threading.Event] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._event = event or threading.Event()
        self._deadline = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, stage: str = "") -> None:
        if self.cancelled:
            raise OperationCancelled(f"Operation cancelled{' during ' + stage if stage else ''}")


def check_cancelled(cancel: Optional[CancellationToken], stage: str = "") -> None:
    """No-op when no token was supplied."""
    if cancel is not None:
        cancel.raise_if_cancelled(stage)


@dataclass
class ClusteringContext:
    """Shared state object threaded through the clustering agents.

    Inputs are set by the engine; each agent writes its own result field.
    """

    config: ClusteringConfig
    run_id: str
    now: datetime
    store: ReportStore = field(default_factory=ReportStore)
    reports: List[Report] = field(default_factory=list)    # batch or new reports
    existing_clusters: List[Cluster] = field(default_factory=list)
    orphaned: List[Report] = field(default_factory=list)   # carried-over orphans
    cancel: Optional[CancellationToken] = None
    id_factory: Optional[Callable[[], str]] = None

    # ── Agent results (populated progressively) ────────────────────────────────
    clustering_result: Optional[ClusteringOutcome] = None
    maintenance_result: Optional[UpdateOutcome] = None
    recommendations: List[ClusterRecommendation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
