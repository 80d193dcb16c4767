from __future__ import annotations

import logging
from typing import Any

from domain.models import TraceEvent

logger = logging.getLogger(__name__)


class LayoutTrace:
    """Collects structured diagnostics for a single layout run.

    Disabled traces drop events, so stages can record unconditionally.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._events: list[TraceEvent] = []

    def record(self, stage: str, message: str, **data: Any) -> None:
        logger.debug("%s: %s %s", stage, message, data)
        if self.enabled:
            self._events.append(TraceEvent(stage=stage, message=message, data=data))

    def events(self) -> tuple[TraceEvent, ...] | None:
        return tuple(self._events) if self.enabled else None
