"""
Device capability enumerations.
"""

from __future__ import annotations

from enum import Enum


class Capability(str, Enum):
    """Protected device features gated by runtime permission."""

    MICROPHONE = "MICROPHONE"
    CAMERA = "CAMERA"


class PermissionStatus(str, Enum):
    """
    Grant state of one capability.

    UNKNOWN until the first request resolves; then GRANTED or DENIED.
    A failed request resolves to DENIED.
    """

    UNKNOWN = "UNKNOWN"
    GRANTED = "GRANTED"
    DENIED = "DENIED"


class CameraFacing(str, Enum):
    """Which physical camera sensor is active."""

    FRONT = "FRONT"
    BACK = "BACK"

    def flipped(self) -> CameraFacing:
        return CameraFacing.FRONT if self is CameraFacing.BACK else CameraFacing.BACK
