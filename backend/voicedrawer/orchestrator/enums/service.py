"""
Service enumeration for run-id versioned device sessions.

Rules:
- Identifies the device sessions whose results are versioned.
- Reducer logic decides when a run starts; this enum has no behavior.
"""

from __future__ import annotations

from enum import Enum


class Service(str, Enum):
    """
    Device sessions managed by the orchestrator.

    Each service has at most one active run at a time, identified by a
    monotonically increasing run_id.
    """

    SPEECH = "SPEECH"
    CAMERA = "CAMERA"


class FailureSource(str, Enum):
    """
    Call site at which an engine failure was caught.

    Drives which baseline the reducer reverts to and which notice it raises.
    """

    SPEECH_START = "SPEECH_START"
    SPEECH_STOP = "SPEECH_STOP"
    SPEECH_STREAM = "SPEECH_STREAM"
    CAMERA_OPEN = "CAMERA_OPEN"
    CAMERA_TOGGLE = "CAMERA_TOGGLE"
