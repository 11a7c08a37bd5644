"""Logging setup for cdrlink.

Modules log through ``logging.getLogger(__name__)``, so every record lands
under the ``cdrlink`` package logger configured by config/logging.yaml. The
engine wraps its logger in a RunContextAdapter so that lines from concurrent
components can be traced back to their analysis run.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Union

import yaml

PACKAGE_LOGGER = "cdrlink"
LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "logging.yaml"

_FALLBACK_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _read_logging_config(path: Path) -> Optional[Dict[str, Any]]:
    if not path.is_file():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def configure_logging(
    log_level: Optional[str] = None,
    config_path: Optional[Union[str, Path]] = None,
) -> None:
    """Apply the dictConfig in logging.yaml, optionally overriding logger levels.

    The override replaces the level of every configured logger and of the
    root logger; handler levels stay as written in the file. When the YAML
    file is missing, a single stderr handler is installed with basicConfig.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR (case-insensitive).
        config_path: Alternate dictConfig YAML; defaults to config/logging.yaml.
    """
    level = log_level.upper() if log_level else None
    path = Path(config_path) if config_path else LOGGING_CONFIG_PATH
    cfg = _read_logging_config(path)

    if cfg is None:
        logging.basicConfig(level=level or logging.INFO, format=_FALLBACK_FORMAT)
        return

    if level:
        for logger_cfg in cfg.get("loggers", {}).values():
            logger_cfg["level"] = level
        if "root" in cfg:
            cfg["root"]["level"] = level
    logging.config.dictConfig(cfg)


class RunContextAdapter(logging.LoggerAdapter):
    """Prefixes each message with the run id: ``[20240115_120000_case42] ...``."""

    @property
    def run_id(self) -> str:
        return self.extra["run_id"]

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        return f"[{self.run_id}] {msg}", kwargs


def get_run_logger(module_name: str, run_id: str) -> RunContextAdapter:
    """Return a run-scoped adapter over the logger for ``module_name``.

    Names outside the package are placed under ``cdrlink`` so they pick up
    its handlers.
    """
    if module_name != PACKAGE_LOGGER and not module_name.startswith(PACKAGE_LOGGER + "."):
        module_name = f"{PACKAGE_LOGGER}.{module_name}"
    return RunContextAdapter(logging.getLogger(module_name), {"run_id": run_id})
