"""
Run ID container for versioned device sessions.

Rules:
- Run IDs are monotonic integers.
- They are owned and incremented ONLY by the orchestrator reducer.
- This module defines structure, not behavior.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunIds:
    """
    Immutable container for active run IDs per service.

    Semantics:
    - A value of 0 means "no run has been started yet".
    - speech is bumped on every listening start or stop request.
    - camera is bumped on every open or facing flip.
    """

    speech: int = 0
    camera: int = 0
