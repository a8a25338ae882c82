"""
Read-only view of the controller for the hosting screen.

Rebuilt after every state change and every animation frame. The host
renders from it and never mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass

from voicedrawer.orchestrator.enums.capability import CameraFacing, PermissionStatus
from voicedrawer.orchestrator.enums.state import DrawerState, Lifecycle, ListeningState
from voicedrawer.orchestrator.state_dataclass import ControllerState, Notice, Transcript


@dataclass(frozen=True)
class ScreenSnapshot:
    lifecycle: Lifecycle
    drawer_state: DrawerState
    # 0.0 closed .. 1.0 open; transient, follows the animator
    drawer_offset: float
    listening_state: ListeningState
    camera_facing: CameraFacing
    camera_active: bool
    last_transcript: Transcript | None
    microphone_permission: PermissionStatus
    camera_permission: PermissionStatus
    voice_enabled: bool
    notice: Notice | None

    @staticmethod
    def from_state(state: ControllerState, *, drawer_offset: float) -> ScreenSnapshot:
        return ScreenSnapshot(
            lifecycle=state.lifecycle,
            drawer_state=state.drawer_state,
            drawer_offset=drawer_offset,
            listening_state=state.listening_state,
            camera_facing=state.camera_facing,
            camera_active=state.camera_active,
            last_transcript=state.last_transcript,
            microphone_permission=state.microphone_permission,
            camera_permission=state.camera_permission,
            voice_enabled=state.voice_enabled,
            notice=state.notice,
        )
