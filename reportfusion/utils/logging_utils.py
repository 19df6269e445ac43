"""Logging utilities for ReportFusion.

YAML-driven logging configuration plus a run-id adapter so a batch run and
its incremental passes can be told apart in a shared log. All loggers are
namespaced under 'reportfusion'.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, MutableMapping, Optional

import yaml

_NAMESPACE = "reportfusion"


def configure_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure logging from the YAML configuration file.

    Falls back to basicConfig if the YAML file is not found.

    Args:
        config_path: Path to logging.yaml (defaults to config/logging.yaml).
        log_level: Override log level (e.g., "DEBUG", "INFO", "WARNING").
        log_file: Override the log file path.
    """
    if config_path is None:
        config_path = str(Path(__file__).parent.parent.parent / "config" / "logging.yaml")

    if not os.path.exists(config_path):
        logging.basicConfig(
            level=getattr(logging, (log_level or "INFO").upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        return

    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    for handler_cfg in cfg.get("handlers", {}).values():
        if handler_cfg.get("class") == "logging.FileHandler" and log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handler_cfg["filename"] = log_file

    if log_level:
        level = log_level.upper()
        for logger_cfg in cfg.get("loggers", {}).values():
            logger_cfg["level"] = level
        if "root" in cfg:
            cfg["root"]["level"] = level

    logging.config.dictConfig(cfg)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the 'reportfusion' namespace.

    Args:
        name: Module or component name (e.g., "agents.clustering_agent").
    """
    if name == _NAMESPACE or name.startswith(_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_NAMESPACE}.{name}")


class RunContextAdapter(logging.LoggerAdapter):
    """Prefix every record with the run id, e.g. ``[batch_20240101_100000] ...``."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        run_id = self.extra.get("run_id", "unknown")
        return f"[{run_id}] {msg}", kwargs


def get_run_logger(name: str, run_id: str) -> RunContextAdapter:
    """Get a run-context-aware logger adapter.

    Args:
        name: Module or component name.
        run_id: Run identifier (see ClusteringContext.run_id).

    Returns:
        LoggerAdapter that prefixes all messages with [run_id].
    """
    return RunContextAdapter(get_logger(name), {"run_id": run_id})
