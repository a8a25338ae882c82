"""
JSONL event logger.

- One JSON object per line on stdout
- No buffering, no batching
- Never raises into the caller
- Can be switched off for embedded hosts (ENABLE_JSON_LOGS=0)
"""

from __future__ import annotations

import json
import sys
from enum import Enum
from typing import Any, Callable, Mapping


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_enabled: bool = True


def configure(*, enabled: bool) -> None:
    """Enable or disable JSONL output process-wide."""
    global _enabled  # pylint: disable=global-statement
    _enabled = enabled


def _default(value: Any) -> Any:
    # Enums and frozen dataclasses show up in details payloads
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return {k: getattr(value, k) for k in value.__dataclass_fields__}
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies a fully-formed event dict (ts_ms, event_type, ...).
    Enum values are written by value. Unserializable payloads degrade to
    a LOGGER_SERIALIZATION_ERROR record instead of raising.
    """
    if not _enabled:
        return

    try:
        line = json.dumps(
            event,
            ensure_ascii=False,
            separators=(",", ":"),
            default=_default,
        )
    except (TypeError, ValueError) as e:
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
