"""Contract for planner telemetry plus stdlib logging configuration."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Protocol

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class Telemetry(Protocol):
    """Reports planner events to the configured sink."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that forwards events to a logger as structured records."""

    def __init__(self, logger: logging.Logger | None = None, max_events: int = 1_000) -> None:
        self._logger = logger or logging.getLogger("npc_planner.telemetry")
        self.events: deque[tuple[str, dict[str, Any]]] = deque(maxlen=max_events)

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, dict(payload)))
        self._logger.info(event_name, extra={"telemetry": payload})


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger; repeated calls only adjust the level."""
    logger = logging.getLogger("npc_planner")
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)
    if not any(getattr(handler, "_npc_planner_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._npc_planner_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
