"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for the controller's behavioral constants.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- AppConfig defaults are taken from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Drawer animation
# =============================================================================

DRAWER_ANIMATION_DURATION_MS: Final[int] = 200

# ~60fps tick; only the timing contract matters, not the easing curve
DRAWER_FRAME_INTERVAL_MS: Final[int] = 16

# Normalized drawer offsets (fraction of drawer width that is visible)
DRAWER_CLOSED_OFFSET: Final[float] = 0.0
DRAWER_OPEN_OFFSET: Final[float] = 1.0

# =============================================================================
# Speech recognition
# =============================================================================

RECOGNITION_LOCALE: Final[str] = "en-US"

OPEN_PHRASE: Final[str] = "open menu"
CLOSE_PHRASE: Final[str] = "close menu"

# =============================================================================
# Desktop engines
# =============================================================================

SPEECH_ENGINE_DEFAULT: Final[str] = "vosk"
CAMERA_ENGINE_DEFAULT: Final[str] = "opencv"

VOSK_MODEL_PATH_DEFAULT: Final[str] = "./model"
VOSK_SAMPLE_RATE_HZ: Final[int] = 16_000
VOSK_BLOCKSIZE: Final[int] = 8_000

CAMERA_BACK_INDEX_DEFAULT: Final[int] = 0
CAMERA_FRONT_INDEX_DEFAULT: Final[int] = 1

# =============================================================================
# User-visible notices
# =============================================================================

NOTICE_MIC_DENIED_TITLE: Final[str] = "Permission Denied"
NOTICE_MIC_DENIED_MESSAGE: Final[str] = (
    "Microphone permission is required for speech recognition."
)

NOTICE_VOICE_UNAVAILABLE_TITLE: Final[str] = "Voice Recognition Unavailable"
NOTICE_VOICE_UNAVAILABLE_MESSAGE: Final[str] = (
    "Voice recognition is not available on this device."
)

NOTICE_ERROR_TITLE: Final[str] = "Error"
NOTICE_START_FAILED_MESSAGE: Final[str] = (
    "Failed to start speech recognition. Please try again."
)
NOTICE_STOP_FAILED_MESSAGE: Final[str] = (
    "Failed to stop speech recognition. Please try again."
)
NOTICE_STREAM_FAILED_MESSAGE: Final[str] = (
    "Speech recognition stopped unexpectedly."
)
NOTICE_CAMERA_FAILED_MESSAGE: Final[str] = "No access to camera."
