"""
Pure controller reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (lifecycle, event) pair is handled or explicitly ignored (logged).
- Only writer of DrawerState: taps and voice both end in _set_drawer().
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from voicedrawer.constants import (
    NOTICE_CAMERA_FAILED_MESSAGE,
    NOTICE_ERROR_TITLE,
    NOTICE_MIC_DENIED_MESSAGE,
    NOTICE_MIC_DENIED_TITLE,
    NOTICE_START_FAILED_MESSAGE,
    NOTICE_STOP_FAILED_MESSAGE,
    NOTICE_STREAM_FAILED_MESSAGE,
    NOTICE_VOICE_UNAVAILABLE_MESSAGE,
    NOTICE_VOICE_UNAVAILABLE_TITLE,
)
from voicedrawer.orchestrator.commands import (
    AnimateDrawer,
    CancelAnimation,
    CheckSpeechAvailability,
    Command,
    DisposeSpeech,
    InitializeCamera,
    LogEvent,
    ReleaseCamera,
    RequestPermission,
    StartListening,
    StopListening,
    SubscribeTranscripts,
    ToggleCameraFacing,
)
from voicedrawer.orchestrator.enums.capability import Capability, PermissionStatus
from voicedrawer.orchestrator.enums.intent import Intent
from voicedrawer.orchestrator.enums.service import FailureSource, Service
from voicedrawer.orchestrator.enums.state import DrawerState, Lifecycle, ListeningState
from voicedrawer.orchestrator.events import (
    CameraFacingChanged,
    CameraFlipTap,
    CameraOpened,
    CameraSkipped,
    DrawerToggleTap,
    EngineFailed,
    Event,
    ListeningChanged,
    MicTap,
    MountRequested,
    NoticeDismissed,
    PermissionResolved,
    ServiceEvent,
    SpeechAvailabilityResolved,
    TranscriptReceived,
    UnmountRequested,
)
from voicedrawer.orchestrator.interpreter import interpret
from voicedrawer.orchestrator.run_ids import RunIds
from voicedrawer.orchestrator.state_dataclass import ControllerState, Notice


Result = tuple[ControllerState, tuple[Command, ...]]


# =============================================================================
# Small helpers
# =============================================================================

def _bump_run_id(active_runs: RunIds, service: Service) -> RunIds:
    if service is Service.SPEECH:
        return replace(active_runs, speech=active_runs.speech + 1)
    if service is Service.CAMERA:
        return replace(active_runs, camera=active_runs.camera + 1)
    raise ValueError(service)


def _active_run_for(active_runs: RunIds, service: Service) -> int:
    if service is Service.SPEECH:
        return active_runs.speech
    if service is Service.CAMERA:
        return active_runs.camera
    raise ValueError(service)


def _is_stale(state: ControllerState, event: ServiceEvent) -> bool:
    return event.run_id != _active_run_for(state.active_runs, event.service)


def _log(
    state: ControllerState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "lifecycle": state.lifecycle.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "run_ids": {
                "speech": state.active_runs.speech,
                "camera": state.active_runs.camera,
            },
            "drawer_state": state.drawer_state.value,
            "listening_state": state.listening_state.value,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs)


def _ignore(state: ControllerState, event: Event, reason: str) -> Result:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _noop(state: ControllerState, event: Event, reason: str) -> Result:
    return state, (_log(state, event, "noop", {"reason": reason}),)


def _set_drawer(
    state: ControllerState,
    event: Event,
    open_: bool,
    source: str,
) -> Result:
    """
    Commit a drawer target and request the animation.

    Same-state targets are a logged no-op so the animation is never
    restarted.
    """
    target = DrawerState.OPEN if open_ else DrawerState.CLOSED
    if state.drawer_state is target:
        return _noop(state, event, f"drawer_already_{target.value.lower()}")

    new_state = replace(state, drawer_state=target)
    return new_state, _logs_last((
        AnimateDrawer(open=open_),
        _log(
            new_state,
            event,
            "drawer_changed",
            {
                "from_state": state.drawer_state.value,
                "to_state": target.value,
                "source": source,
            },
        ),
    ))


def _with_notice(
    state: ControllerState,
    event: Event,
    title: str,
    message: str,
    reason: str,
) -> Result:
    new_state = replace(state, notice=Notice(title=title, message=message))
    return new_state, (
        _log(new_state, event, "notice", {"title": title, "reason": reason}),
    )


def _finish_mount(
    state: ControllerState,
    event: Event,
    commands: tuple[Command, ...] = (),
) -> Result:
    """Final mount step: wire transcripts and enter MOUNTED."""
    if state.lifecycle is not Lifecycle.MOUNTING:
        return state, commands

    new_state = replace(state, lifecycle=Lifecycle.MOUNTED)
    return new_state, _logs_last(commands + (
        SubscribeTranscripts(),
        _log(
            new_state,
            event,
            "mount_complete",
            {
                "voice_enabled": new_state.voice_enabled,
                "camera_active": new_state.camera_active,
                "microphone_permission": new_state.microphone_permission.value,
                "camera_permission": new_state.camera_permission.value,
            },
        ),
    ))


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(state: ControllerState, event: Event) -> Result:  # pylint: disable=too-many-return-statements,too-many-branches
    """
    Apply one event to the controller state.

    Returns the new state and the commands the runtime must execute,
    in order.
    """
    # -------------------------------------------------------------------------
    # Terminal: nothing is accepted after teardown
    # -------------------------------------------------------------------------
    if state.lifecycle is Lifecycle.UNMOUNTED:
        return _ignore(state, event, "controller_unmounted")

    # -------------------------------------------------------------------------
    # Mount lifecycle
    # -------------------------------------------------------------------------
    if isinstance(event, MountRequested):
        if state.lifecycle is not Lifecycle.IDLE:
            return _ignore(state, event, "already_mounted")

        new_state = replace(state, lifecycle=Lifecycle.MOUNTING)
        return new_state, _logs_last((
            RequestPermission(capability=Capability.MICROPHONE),
            _log(new_state, event, "mount_started", {"controller_id": event.controller_id}),
        ))

    if isinstance(event, UnmountRequested):
        new_state = replace(
            state,
            lifecycle=Lifecycle.UNMOUNTED,
            listening_state=ListeningState.IDLE,
            listen_pending=False,
            camera_active=False,
        )
        return new_state, _logs_last((
            DisposeSpeech(),
            ReleaseCamera(),
            CancelAnimation(),
            _log(
                new_state,
                event,
                "teardown",
                {"from_lifecycle": state.lifecycle.value, "reason": event.reason},
            ),
        ))

    # -------------------------------------------------------------------------
    # Mount sequence (strictly ordered: each result triggers the next step)
    # -------------------------------------------------------------------------
    if isinstance(event, PermissionResolved):
        if state.lifecycle is not Lifecycle.MOUNTING:
            return _ignore(state, event, "not_mounting")

        if event.capability is Capability.MICROPHONE:
            new_state = replace(state, microphone_permission=event.status)
            if event.status is PermissionStatus.GRANTED:
                return new_state, _logs_last((
                    CheckSpeechAvailability(),
                    _log(new_state, event, "microphone_granted"),
                ))
            return new_state, _logs_last((
                RequestPermission(capability=Capability.CAMERA),
                _log(new_state, event, "voice_disabled", {"status": event.status.value}),
            ))

        new_state = replace(state, camera_permission=event.status)
        if event.status is PermissionStatus.GRANTED:
            new_runs = _bump_run_id(new_state.active_runs, Service.CAMERA)
            new_state = replace(new_state, active_runs=new_runs)
            return new_state, _logs_last((
                InitializeCamera(run_id=new_runs.camera, permission=event.status),
                _log(new_state, event, "camera_granted"),
            ))
        return _finish_mount(
            replace(new_state, camera_active=False),
            event,
            (_log(new_state, event, "camera_degraded", {"status": event.status.value}),),
        )

    if isinstance(event, SpeechAvailabilityResolved):
        if state.lifecycle is not Lifecycle.MOUNTING:
            return _ignore(state, event, "not_mounting")

        new_state = replace(state, speech_available=event.available)
        return new_state, _logs_last((
            RequestPermission(capability=Capability.CAMERA),
            _log(
                new_state,
                event,
                "speech_available" if event.available else "speech_unavailable",
            ),
        ))

    if isinstance(event, CameraOpened):
        if _is_stale(state, event):
            return _ignore(state, event, "stale_run_id")

        new_state = replace(state, camera_active=True, camera_facing=event.facing)
        return _finish_mount(
            new_state,
            event,
            (_log(new_state, event, "camera_opened", {"facing": event.facing.value}),),
        )

    if isinstance(event, CameraSkipped):
        if _is_stale(state, event):
            return _ignore(state, event, "stale_run_id")

        new_state = replace(state, camera_active=False)
        return _finish_mount(new_state, event, (_log(new_state, event, "camera_skipped"),))

    # -------------------------------------------------------------------------
    # Drawer: taps and voice share _set_drawer()
    # -------------------------------------------------------------------------
    if isinstance(event, DrawerToggleTap):
        return _set_drawer(
            state,
            event,
            state.drawer_state is DrawerState.CLOSED,
            source="tap",
        )

    if isinstance(event, TranscriptReceived):
        if state.lifecycle is not Lifecycle.MOUNTED:
            return _ignore(state, event, "not_mounted")
        if not state.voice_enabled:
            return _ignore(state, event, "voice_disabled")

        new_state = replace(state, last_transcript=event.transcript)
        intent = interpret(
            event.transcript,
            open_phrase=state.open_phrase,
            close_phrase=state.close_phrase,
        )
        if intent is Intent.NONE:
            return _noop(new_state, event, "no_intent")

        return _set_drawer(
            new_state,
            event,
            intent is Intent.OPEN_DRAWER,
            source="voice",
        )

    # -------------------------------------------------------------------------
    # Camera
    # -------------------------------------------------------------------------
    if isinstance(event, CameraFlipTap):
        if not state.camera_active:
            return _noop(state, event, "camera_inactive")

        new_runs = _bump_run_id(state.active_runs, Service.CAMERA)
        new_state = replace(state, active_runs=new_runs)
        return new_state, _logs_last((
            ToggleCameraFacing(run_id=new_runs.camera),
            _log(new_state, event, "toggle_camera_facing"),
        ))

    if isinstance(event, CameraFacingChanged):
        if _is_stale(state, event):
            return _ignore(state, event, "stale_run_id")

        new_state = replace(
            state,
            camera_facing=event.facing,
            camera_active=event.camera_active,
        )
        return new_state, (
            _log(new_state, event, "camera_facing_changed", {"facing": event.facing.value}),
        )

    # -------------------------------------------------------------------------
    # Speech
    # -------------------------------------------------------------------------
    if isinstance(event, MicTap):
        if state.lifecycle is not Lifecycle.MOUNTED:
            return _ignore(state, event, "not_mounted")

        if state.listening_state is ListeningState.LISTENING:
            new_runs = _bump_run_id(state.active_runs, Service.SPEECH)
            new_state = replace(state, active_runs=new_runs)
            return new_state, _logs_last((
                StopListening(run_id=new_runs.speech),
                _log(new_state, event, "stop_listening"),
            ))

        if state.listen_pending:
            return _ignore(state, event, "start_in_flight")

        if state.microphone_permission is not PermissionStatus.GRANTED:
            return _with_notice(
                state,
                event,
                NOTICE_MIC_DENIED_TITLE,
                NOTICE_MIC_DENIED_MESSAGE,
                "microphone_denied",
            )

        if not state.speech_available:
            return _with_notice(
                state,
                event,
                NOTICE_VOICE_UNAVAILABLE_TITLE,
                NOTICE_VOICE_UNAVAILABLE_MESSAGE,
                "speech_unavailable",
            )

        new_runs = _bump_run_id(state.active_runs, Service.SPEECH)
        new_state = replace(state, active_runs=new_runs, listen_pending=True)
        return new_state, _logs_last((
            StartListening(run_id=new_runs.speech, locale=state.recognition_locale),
            _log(new_state, event, "start_listening", {"locale": state.recognition_locale}),
        ))

    if isinstance(event, ListeningChanged):
        if _is_stale(state, event):
            return _ignore(state, event, "stale_run_id")

        new_state = replace(
            state,
            listening_state=event.listening_state,
            listen_pending=False,
        )
        return new_state, (
            _log(
                new_state,
                event,
                "listening_changed",
                {
                    "from_state": state.listening_state.value,
                    "to_state": event.listening_state.value,
                },
            ),
        )

    # -------------------------------------------------------------------------
    # Failures: revert to baseline + one-shot notice
    # -------------------------------------------------------------------------
    if isinstance(event, EngineFailed):
        if _is_stale(state, event):
            return _ignore(state, event, "stale_run_id")

        if event.service is Service.CAMERA:
            new_state = replace(state, camera_active=False)
            new_state, cmds = _with_notice(
                new_state,
                event,
                NOTICE_ERROR_TITLE,
                NOTICE_CAMERA_FAILED_MESSAGE,
                event.source.value,
            )
            if event.source is FailureSource.CAMERA_OPEN:
                return _finish_mount(new_state, event, cmds)
            return new_state, cmds

        if event.source is FailureSource.SPEECH_STOP:
            message = NOTICE_STOP_FAILED_MESSAGE
        elif event.source is FailureSource.SPEECH_STREAM:
            message = NOTICE_STREAM_FAILED_MESSAGE
        else:
            message = NOTICE_START_FAILED_MESSAGE

        new_state = replace(
            state,
            listening_state=ListeningState.IDLE,
            listen_pending=False,
        )
        return _with_notice(
            new_state,
            event,
            NOTICE_ERROR_TITLE,
            message,
            event.source.value,
        )

    if isinstance(event, NoticeDismissed):
        if state.notice is None:
            return _noop(state, event, "no_notice")
        new_state = replace(state, notice=None)
        return new_state, (_log(new_state, event, "notice_dismissed"),)

    return _ignore(state, event, "unhandled_event")
