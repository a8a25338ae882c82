"""
Event definitions for the controller reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Device results carry the run_id of the request that produced them so the
reducer can drop stale results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from voicedrawer.orchestrator.enums.capability import (
    CameraFacing,
    Capability,
    PermissionStatus,
)
from voicedrawer.orchestrator.enums.service import FailureSource, Service
from voicedrawer.orchestrator.enums.state import ListeningState
from voicedrawer.orchestrator.state_dataclass import Transcript


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (lifecycle, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Mount lifecycle
    # ------------------------------------------------------------------
    MOUNT_REQUESTED = "MOUNT_REQUESTED"
    UNMOUNT_REQUESTED = "UNMOUNT_REQUESTED"

    # ------------------------------------------------------------------
    # Mount sequence results
    # ------------------------------------------------------------------
    PERMISSION_RESOLVED = "PERMISSION_RESOLVED"
    SPEECH_AVAILABILITY_RESOLVED = "SPEECH_AVAILABILITY_RESOLVED"
    CAMERA_OPENED = "CAMERA_OPENED"
    CAMERA_SKIPPED = "CAMERA_SKIPPED"

    # ------------------------------------------------------------------
    # Host input
    # ------------------------------------------------------------------
    DRAWER_TOGGLE_TAP = "DRAWER_TOGGLE_TAP"
    CAMERA_FLIP_TAP = "CAMERA_FLIP_TAP"
    MIC_TAP = "MIC_TAP"
    NOTICE_DISMISSED = "NOTICE_DISMISSED"

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------
    TRANSCRIPT_RECEIVED = "TRANSCRIPT_RECEIVED"
    LISTENING_CHANGED = "LISTENING_CHANGED"

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------
    CAMERA_FACING_CHANGED = "CAMERA_FACING_CHANGED"

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------
    ENGINE_FAILED = "ENGINE_FAILED"


# =============================================================================
# Base Events
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


@dataclass(frozen=True)
class ServiceEvent(Event):
    """
    Base class for results of a versioned device request.

    The reducer MUST ignore events whose run_id does not match the
    currently active run for that service.
    """

    service: Service
    run_id: int


# =============================================================================
# Mount lifecycle
# =============================================================================

@dataclass(frozen=True)
class MountRequested(Event):
    """Host mounted the screen."""
    controller_id: str


@dataclass(frozen=True)
class UnmountRequested(Event):
    """Host is tearing the screen down (any exit path)."""
    reason: str | None = None


# =============================================================================
# Mount sequence results
# =============================================================================

@dataclass(frozen=True)
class PermissionResolved(Event):
    """A capability permission request resolved."""
    capability: Capability
    status: PermissionStatus


@dataclass(frozen=True)
class SpeechAvailabilityResolved(Event):
    """Speech engine availability check resolved."""
    available: bool


@dataclass(frozen=True)
class CameraOpened(ServiceEvent):
    """Camera handle opened with the given facing."""
    facing: CameraFacing


@dataclass(frozen=True)
class CameraSkipped(ServiceEvent):
    """CameraSession declined to open (permission not granted)."""


# =============================================================================
# Host input
# =============================================================================

@dataclass(frozen=True)
class DrawerToggleTap(Event):
    """Manual drawer toggle (menu or close button)."""


@dataclass(frozen=True)
class CameraFlipTap(Event):
    """Manual camera front/back flip."""


@dataclass(frozen=True)
class MicTap(Event):
    """Manual microphone toggle."""


@dataclass(frozen=True)
class NoticeDismissed(Event):
    """Host dismissed the current notice."""


# =============================================================================
# Speech
# =============================================================================

@dataclass(frozen=True)
class TranscriptReceived(Event):
    """One completed utterance delivered by SpeechSession."""
    transcript: Transcript


@dataclass(frozen=True)
class ListeningChanged(ServiceEvent):
    """SpeechSession reported its listening state after start/stop."""
    listening_state: ListeningState


# =============================================================================
# Camera
# =============================================================================

@dataclass(frozen=True)
class CameraFacingChanged(ServiceEvent):
    """CameraSession reported its facing after a toggle."""
    facing: CameraFacing
    camera_active: bool = True


# =============================================================================
# Failures
# =============================================================================

@dataclass(frozen=True)
class EngineFailed(ServiceEvent):
    """
    An engine call failed at a known call site.

    The reducer reverts to the baseline for that source and raises a
    one-shot notice.
    """
    source: FailureSource
    reason: str
