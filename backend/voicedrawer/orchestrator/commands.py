"""
Side-effect command definitions for the controller.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from voicedrawer.orchestrator.enums.capability import Capability, PermissionStatus

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    Stable discriminants used for logging and runtime dispatch.
    """

    # Permissions
    REQUEST_PERMISSION = "REQUEST_PERMISSION"

    # Speech
    CHECK_SPEECH_AVAILABILITY = "CHECK_SPEECH_AVAILABILITY"
    SUBSCRIBE_TRANSCRIPTS = "SUBSCRIBE_TRANSCRIPTS"
    START_LISTENING = "START_LISTENING"
    STOP_LISTENING = "STOP_LISTENING"
    DISPOSE_SPEECH = "DISPOSE_SPEECH"

    # Camera
    INITIALIZE_CAMERA = "INITIALIZE_CAMERA"
    TOGGLE_CAMERA_FACING = "TOGGLE_CAMERA_FACING"
    RELEASE_CAMERA = "RELEASE_CAMERA"

    # Drawer
    ANIMATE_DRAWER = "ANIMATE_DRAWER"
    CANCEL_ANIMATION = "CANCEL_ANIMATION"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Permission Commands
# =============================================================================

@dataclass(frozen=True)
class RequestPermission(Command):
    """Ask the PermissionGateway for one capability."""
    capability: Capability
    command_type: CommandType = CommandType.REQUEST_PERMISSION


# =============================================================================
# Speech Commands
# =============================================================================

@dataclass(frozen=True)
class CheckSpeechAvailability(Command):
    """Query the speech engine once per mount."""
    command_type: CommandType = CommandType.CHECK_SPEECH_AVAILABILITY


@dataclass(frozen=True)
class SubscribeTranscripts(Command):
    """Route SpeechSession results into TranscriptReceived events."""
    command_type: CommandType = CommandType.SUBSCRIBE_TRANSCRIPTS


@dataclass(frozen=True)
class StartListening(Command):
    """Start a recognition run."""
    run_id: int
    locale: str
    command_type: CommandType = CommandType.START_LISTENING


@dataclass(frozen=True)
class StopListening(Command):
    """Stop the active recognition run."""
    run_id: int
    command_type: CommandType = CommandType.STOP_LISTENING


@dataclass(frozen=True)
class DisposeSpeech(Command):
    """Release the speech engine. Issued exactly once, at unmount."""
    command_type: CommandType = CommandType.DISPOSE_SPEECH


# =============================================================================
# Camera Commands
# =============================================================================

@dataclass(frozen=True)
class InitializeCamera(Command):
    """
    Open the camera handle.

    permission is passed through so CameraSession can refuse on its own.
    """
    run_id: int
    permission: PermissionStatus
    command_type: CommandType = CommandType.INITIALIZE_CAMERA


@dataclass(frozen=True)
class ToggleCameraFacing(Command):
    """Flip front/back on the open handle."""
    run_id: int
    command_type: CommandType = CommandType.TOGGLE_CAMERA_FACING


@dataclass(frozen=True)
class ReleaseCamera(Command):
    """Close any open handle. Issued exactly once, at unmount."""
    command_type: CommandType = CommandType.RELEASE_CAMERA


# =============================================================================
# Drawer Commands
# =============================================================================

@dataclass(frozen=True)
class AnimateDrawer(Command):
    """Drive DrawerAnimator toward the committed drawer state."""
    open: bool
    command_type: CommandType = CommandType.ANIMATE_DRAWER


@dataclass(frozen=True)
class CancelAnimation(Command):
    """Stop any in-flight drawer interpolation."""
    command_type: CommandType = CommandType.CANCEL_ANIMATION


# =============================================================================
# Observability
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Structured log record produced by the reducer."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
