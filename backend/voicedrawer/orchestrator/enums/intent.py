"""
Voice command intents.

Ephemeral: computed per transcript, never stored.
"""

from __future__ import annotations

from enum import Enum


class Intent(str, Enum):
    """Recognized intent of one transcript."""

    OPEN_DRAWER = "OPEN_DRAWER"
    CLOSE_DRAWER = "CLOSE_DRAWER"
    NONE = "NONE"
