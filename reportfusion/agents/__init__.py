"""ReportFusion agents package.

Agents read their inputs from a ClusteringContext; the engine stores their results.
"""

from reportfusion.agents.base import AgentStatus, BaseAgent

__all__ = [
    "BaseAgent",
    "AgentStatus",
]
