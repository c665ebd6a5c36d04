"""
Diagnostic events for AI round-trips, enabled with AI_DEBUG=1.

Events are observational only. The sink can be swapped (e.g. in tests) with
set_ai_debug_sink.
"""
import json
import logging
import os
from typing import Any, Callable, Optional

logger = logging.getLogger("ai_debug")

DebugSink = Callable[[dict], None]


def is_ai_debug_enabled() -> bool:
    return os.getenv("AI_DEBUG") == "1"


def _log_sink(payload: dict) -> None:
    # ERROR level so the events stand out in server logs
    logger.error(json.dumps(payload, ensure_ascii=False, default=str))


_sink: DebugSink = _log_sink


def set_ai_debug_sink(sink: Optional[DebugSink]) -> DebugSink:
    """Replace the debug sink; None restores the logging sink. Returns the previous sink."""
    global _sink
    previous = _sink
    _sink = sink or _log_sink
    return previous


def log_ai_debug(event: str, **data: Any) -> None:
    if not is_ai_debug_enabled():
        return
    _sink({"event": event, **data})
