"""
Authoritative controller state container.

Rules:
- Pure data model, no behavior.
- Contains ALL state the reducer may ever need.
- The reducer is the only writer; everything else reads snapshots.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from voicedrawer.constants import CLOSE_PHRASE, OPEN_PHRASE, RECOGNITION_LOCALE
from voicedrawer.orchestrator.enums.capability import CameraFacing, PermissionStatus
from voicedrawer.orchestrator.enums.state import DrawerState, Lifecycle, ListeningState
from voicedrawer.orchestrator.run_ids import RunIds


# =============================================================================
# Value objects
# =============================================================================

@dataclass(frozen=True)
class Transcript:
    """Text of one completed utterance. Consumed once, never collected."""
    text: str
    ts_ms: int


@dataclass(frozen=True)
class Notice:
    """One-shot user-visible notice (alert)."""
    title: str
    message: str


# =============================================================================
# Controller State
# =============================================================================

@dataclass(frozen=True)
class ControllerState:
    """Immutable snapshot of all orchestrator-owned state."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    lifecycle: Lifecycle = Lifecycle.IDLE

    # ------------------------------------------------------------------
    # Permissions (one per capability)
    # ------------------------------------------------------------------
    microphone_permission: PermissionStatus = PermissionStatus.UNKNOWN
    camera_permission: PermissionStatus = PermissionStatus.UNKNOWN

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------
    # None until the availability check resolved (or was skipped)
    speech_available: bool | None = None

    # Mirrored from SpeechSession reports only
    listening_state: ListeningState = ListeningState.IDLE

    # Optimistic flag while a start request is in flight
    listen_pending: bool = False

    last_transcript: Transcript | None = None

    # ------------------------------------------------------------------
    # Drawer (reducer is the only writer)
    # ------------------------------------------------------------------
    drawer_state: DrawerState = DrawerState.CLOSED

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------
    camera_facing: CameraFacing = CameraFacing.BACK
    camera_active: bool = False

    # ------------------------------------------------------------------
    # Run/version tracking
    # ------------------------------------------------------------------
    active_runs: RunIds = field(default_factory=RunIds)

    # ------------------------------------------------------------------
    # User notice (one-shot; cleared by NoticeDismissed)
    # ------------------------------------------------------------------
    notice: Notice | None = None

    # ------------------------------------------------------------------
    # Configuration carried for command construction
    # ------------------------------------------------------------------
    recognition_locale: str = RECOGNITION_LOCALE
    open_phrase: str = OPEN_PHRASE
    close_phrase: str = CLOSE_PHRASE

    @property
    def voice_enabled(self) -> bool:
        """Microphone granted and the engine confirmed available."""
        return (
            self.microphone_permission is PermissionStatus.GRANTED
            and self.speech_available is True
        )
