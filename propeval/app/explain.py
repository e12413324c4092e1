from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the CLI flag to print terse, readable lines at flow milestones.
"""

import json
from typing import Any, Dict

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    try:
        line = json.dumps(payload or {}, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        line = "{}"
    print(f"[EXPLAIN] {event} :: {line}")
