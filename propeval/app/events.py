from __future__ import annotations

"""Telemetry collaborators: fire-and-forget `track(event, properties)`."""

import logging
from typing import Any, Callable, Dict, List, Protocol

from .explain import trace

logger = logging.getLogger(__name__)

Handler = Callable[[str, Dict[str, Any]], None]


class Telemetry(Protocol):
    def track(self, event: str, properties: Dict[str, Any]) -> None: ...


class TraceTelemetry:
    """Forwards events to explain mode."""

    def track(self, event: str, properties: Dict[str, Any]) -> None:
        trace(event, properties)


class TelemetryBus:
    """Tiny pub/sub: fans each event out to subscribers.

    Subscribe to a specific event name or to "*" for everything. A failing
    handler is logged and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, List[Handler]] = {}

    def subscribe(self, event: str, handler: Handler) -> None:
        self._subs.setdefault(event, []).append(handler)

    def track(self, event: str, properties: Dict[str, Any]) -> None:
        for h in self._subs.get(event, []) + self._subs.get("*", []):
            try:
                h(event, properties)
            except Exception:
                logger.exception("Telemetry handler failed for %s", event)
