"""BaseAgent ABC and AgentStatus constants for ReportFusion.

Each engine stage (batch clustering, incremental maintenance, ranking) is an
agent that reads its inputs from a ClusteringContext and returns a typed
result. The base class fixes the interface: run and validate_output.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from reportfusion.models.pipeline import OperationCancelled

if TYPE_CHECKING:
    from reportfusion.models.pipeline import ClusteringContext

logger = logging.getLogger(__name__)


class AgentStatus:
    """Status codes logged after each agent run."""

    OK = "OK"
    PARTIAL = "PARTIAL"      # completed with warnings (e.g. too few reports)
    FAILED = "FAILED"


class BaseAgent(ABC):
    """Abstract base class for all ReportFusion agents.

    Agents hold no run data between calls; everything flows through the
    ClusteringContext, and results are written back by the caller.
    """

    name: str = "BaseAgent"
    version: str = "1.0.0"

    @abstractmethod
    def run(self, context: "ClusteringContext") -> Any:
        """Execute the agent and return a typed result.

        Args:
            context: Shared context with configuration, store and inputs.

        Returns:
            A typed result dataclass (subclass-specific).
        """

    def validate_output(self, result: Any) -> bool:
        """Post-run validation of structured output.

        Override this method to add agent-specific output checks.
        """
        return result is not None

    def _run_timed(self, context: "ClusteringContext") -> Any:
        """Execute run(), log elapsed time and re-raise any failure.

        Cancellation is logged at info level; other failures at error level
        with a traceback.

        Args:
            context: Shared clustering context.

        Returns:
            Result from run().
        """
        start = time.monotonic()
        try:
            result = self.run(context)
        except OperationCancelled as exc:
            elapsed = time.monotonic() - start
            logger.info(
                "Agent %s cancelled after %.2fs [%s]: %s",
                self.name,
                elapsed,
                context.run_id,
                exc,
            )
            raise
        except Exception as exc:
            elapsed = time.monotonic() - start
            logger.error(
                "Agent %s failed after %.2fs [%s] (status=%s): %s",
                self.name,
                elapsed,
                context.run_id,
                AgentStatus.FAILED,
                exc,
                exc_info=True,
            )
            raise

        elapsed = time.monotonic() - start
        if not self.validate_output(result):
            logger.warning("Agent %s produced invalid output [%s]", self.name, context.run_id)
        status = AgentStatus.PARTIAL if context.warnings else AgentStatus.OK
        logger.info(
            "Agent %s completed in %.2fs [%s] (status=%s)",
            self.name,
            elapsed,
            context.run_id,
            status,
        )
        return result
