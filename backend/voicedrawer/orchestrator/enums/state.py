"""
Control-plane state enumerations.

Rules:
- These enums define ONLY values, no behavior.
- Transitions are defined exclusively in the reducer (drawer, lifecycle)
  or reported by the owning session (listening).
"""

from __future__ import annotations

from enum import Enum


class Lifecycle(str, Enum):
    """
    Mount lifecycle of a single controller instance.

    A controller is single-use: UNMOUNTED is terminal.
    """

    IDLE = "IDLE"
    MOUNTING = "MOUNTING"
    MOUNTED = "MOUNTED"
    UNMOUNTED = "UNMOUNTED"


class DrawerState(str, Enum):
    """Committed drawer position. The animated offset is not state."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"


class ListeningState(str, Enum):
    """
    Speech session listening state.

    Owned by SpeechSession. The orchestrator only mirrors what the
    session reports after start/stop.
    """

    IDLE = "IDLE"
    LISTENING = "LISTENING"
