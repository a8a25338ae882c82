"""
Timing metrics for the mount sequence and device calls.

- Durations use monotonic time
- One measurement = one METRIC_TIMER log event
- Prefer timed() so a timer can never leak
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from voicedrawer.observability.logger import log_event


@contextmanager
def timed(
    name: str,
    *,
    controller_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Measure the enclosed block and emit exactly one metric event.

    The yielded dict is merged into the event's details, so callers can
    attach an outcome discovered inside the block:

        with timed("permission_request", details={"capability": "camera"}) as m:
            m["status"] = await provider.request_permission(cap)

    Exceptions inside the block are not suppressed; the metric is still
    emitted with outcome "error".
    """
    extra: dict[str, Any] = {}
    start_ns = time.monotonic_ns()
    outcome = "ok"
    try:
        yield extra
    except BaseException:
        outcome = "error"
        raise
    finally:
        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        log_event({
            # Wall-clock timestamp for log correlation only
            "ts_ms": int(time.time() * 1000),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": duration_ms,
            "outcome": outcome,
            "controller_id": controller_id,
            "details": {**(details or {}), **extra},
        })
