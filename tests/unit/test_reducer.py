# pylint: disable=missing-module-docstring,missing-function-docstring

from dataclasses import replace

from voicedrawer.constants import (
    NOTICE_ERROR_TITLE,
    NOTICE_MIC_DENIED_TITLE,
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
from voicedrawer.orchestrator.enums.capability import (
    CameraFacing,
    Capability,
    PermissionStatus,
)
from voicedrawer.orchestrator.enums.service import FailureSource, Service
from voicedrawer.orchestrator.enums.state import DrawerState, Lifecycle, ListeningState
from voicedrawer.orchestrator.events import (
    CameraFacingChanged,
    CameraFlipTap,
    CameraOpened,
    DrawerToggleTap,
    EngineFailed,
    EventType,
    ListeningChanged,
    MicTap,
    MountRequested,
    NoticeDismissed,
    PermissionResolved,
    SpeechAvailabilityResolved,
    TranscriptReceived,
    UnmountRequested,
)
from voicedrawer.orchestrator.reducer import reduce
from voicedrawer.orchestrator.run_ids import RunIds
from voicedrawer.orchestrator.state_dataclass import ControllerState, Transcript


def _mounted(**overrides) -> ControllerState:
    base = ControllerState(
        lifecycle=Lifecycle.MOUNTED,
        microphone_permission=PermissionStatus.GRANTED,
        camera_permission=PermissionStatus.GRANTED,
        speech_available=True,
        camera_active=True,
    )
    return replace(base, **overrides)


def _non_log(commands: tuple[Command, ...]) -> list[Command]:
    return [c for c in commands if not isinstance(c, LogEvent)]


def _decision(commands: tuple[Command, ...]) -> str:
    logs = [c for c in commands if isinstance(c, LogEvent)]
    assert logs, "every reducer step must log"
    return logs[-1].event["decision"]


def _transcript(text: str) -> TranscriptReceived:
    return TranscriptReceived(
        event_type=EventType.TRANSCRIPT_RECEIVED,
        ts_ms=10,
        transcript=Transcript(text=text, ts_ms=10),
    )


# ---------------------------------------------------------------------------
# Purity and logging contract
# ---------------------------------------------------------------------------

def test_reducer_does_not_mutate_input_state() -> None:
    state = _mounted()
    before = replace(state)

    reduce(state, DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=1))

    assert state == before


def test_log_event_carries_required_fields() -> None:
    _, commands = reduce(
        _mounted(),
        DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=123),
    )

    payload = [c for c in commands if isinstance(c, LogEvent)][0].event
    for key in (
        "ts_ms",
        "lifecycle",
        "event_type",
        "decision",
        "run_ids",
        "drawer_state",
        "listening_state",
        "details",
    ):
        assert key in payload
    assert payload["ts_ms"] == 123
    assert payload["run_ids"] == {"speech": 0, "camera": 0}


def test_logs_come_after_side_effect_commands() -> None:
    _, commands = reduce(
        _mounted(),
        DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=1),
    )

    assert isinstance(commands[0], AnimateDrawer)
    assert isinstance(commands[-1], LogEvent)


# ---------------------------------------------------------------------------
# Mount sequence
# ---------------------------------------------------------------------------

def test_mount_requests_microphone_first() -> None:
    state, commands = reduce(
        ControllerState(),
        MountRequested(event_type=EventType.MOUNT_REQUESTED, ts_ms=1, controller_id="c"),
    )

    assert state.lifecycle is Lifecycle.MOUNTING
    assert _non_log(commands) == [RequestPermission(capability=Capability.MICROPHONE)]


def test_second_mount_is_ignored() -> None:
    state = _mounted()
    new_state, commands = reduce(
        state,
        MountRequested(event_type=EventType.MOUNT_REQUESTED, ts_ms=1, controller_id="c"),
    )

    assert new_state is state
    assert _decision(commands) == "ignore"


def test_microphone_granted_checks_availability() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING)
    new_state, commands = reduce(
        state,
        PermissionResolved(
            event_type=EventType.PERMISSION_RESOLVED,
            ts_ms=1,
            capability=Capability.MICROPHONE,
            status=PermissionStatus.GRANTED,
        ),
    )

    assert new_state.microphone_permission is PermissionStatus.GRANTED
    assert _non_log(commands) == [CheckSpeechAvailability()]


def test_microphone_denied_skips_availability_and_asks_for_camera() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING)
    new_state, commands = reduce(
        state,
        PermissionResolved(
            event_type=EventType.PERMISSION_RESOLVED,
            ts_ms=1,
            capability=Capability.MICROPHONE,
            status=PermissionStatus.DENIED,
        ),
    )

    assert new_state.microphone_permission is PermissionStatus.DENIED
    assert not new_state.voice_enabled
    assert _non_log(commands) == [RequestPermission(capability=Capability.CAMERA)]


def test_availability_result_then_camera_permission() -> None:
    state = ControllerState(
        lifecycle=Lifecycle.MOUNTING,
        microphone_permission=PermissionStatus.GRANTED,
    )
    new_state, commands = reduce(
        state,
        SpeechAvailabilityResolved(
            event_type=EventType.SPEECH_AVAILABILITY_RESOLVED,
            ts_ms=1,
            available=False,
        ),
    )

    assert new_state.speech_available is False
    assert _non_log(commands) == [RequestPermission(capability=Capability.CAMERA)]


def test_camera_granted_bumps_run_and_initializes() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING)
    new_state, commands = reduce(
        state,
        PermissionResolved(
            event_type=EventType.PERMISSION_RESOLVED,
            ts_ms=1,
            capability=Capability.CAMERA,
            status=PermissionStatus.GRANTED,
        ),
    )

    assert new_state.active_runs.camera == 1
    assert _non_log(commands) == [
        InitializeCamera(run_id=1, permission=PermissionStatus.GRANTED)
    ]


def test_camera_denied_completes_mount_degraded() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING)
    new_state, commands = reduce(
        state,
        PermissionResolved(
            event_type=EventType.PERMISSION_RESOLVED,
            ts_ms=1,
            capability=Capability.CAMERA,
            status=PermissionStatus.DENIED,
        ),
    )

    assert new_state.lifecycle is Lifecycle.MOUNTED
    assert new_state.camera_active is False
    assert _non_log(commands) == [SubscribeTranscripts()]
    assert not any(isinstance(c, InitializeCamera) for c in commands)


def test_camera_opened_completes_mount() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING, active_runs=RunIds(camera=1))
    new_state, commands = reduce(
        state,
        CameraOpened(
            event_type=EventType.CAMERA_OPENED,
            ts_ms=1,
            service=Service.CAMERA,
            run_id=1,
            facing=CameraFacing.BACK,
        ),
    )

    assert new_state.lifecycle is Lifecycle.MOUNTED
    assert new_state.camera_active is True
    assert _non_log(commands) == [SubscribeTranscripts()]


def test_camera_open_failure_completes_mount_with_notice() -> None:
    state = ControllerState(lifecycle=Lifecycle.MOUNTING, active_runs=RunIds(camera=1))
    new_state, _ = reduce(
        state,
        EngineFailed(
            event_type=EventType.ENGINE_FAILED,
            ts_ms=1,
            service=Service.CAMERA,
            run_id=1,
            source=FailureSource.CAMERA_OPEN,
            reason="boom",
        ),
    )

    assert new_state.lifecycle is Lifecycle.MOUNTED
    assert new_state.camera_active is False
    assert new_state.notice is not None
    assert new_state.notice.title == NOTICE_ERROR_TITLE


# ---------------------------------------------------------------------------
# Drawer
# ---------------------------------------------------------------------------

def test_toggle_tap_flips_drawer() -> None:
    state, commands = reduce(
        _mounted(),
        DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=1),
    )
    assert state.drawer_state is DrawerState.OPEN
    assert _non_log(commands) == [AnimateDrawer(open=True)]

    state, commands = reduce(
        state,
        DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=2),
    )
    assert state.drawer_state is DrawerState.CLOSED
    assert _non_log(commands) == [AnimateDrawer(open=False)]


def test_voice_open_sets_drawer_and_records_transcript() -> None:
    state, commands = reduce(_mounted(), _transcript("OPEN MENU please"))

    assert state.drawer_state is DrawerState.OPEN
    assert state.last_transcript is not None
    assert state.last_transcript.text == "OPEN MENU please"
    assert _non_log(commands) == [AnimateDrawer(open=True)]


def test_voice_open_when_already_open_is_noop() -> None:
    state = _mounted(drawer_state=DrawerState.OPEN)
    new_state, commands = reduce(state, _transcript("open menu"))

    assert new_state.drawer_state is DrawerState.OPEN
    assert _non_log(commands) == []
    assert _decision(commands) == "noop"


def test_transcript_without_intent_only_updates_last_transcript() -> None:
    new_state, commands = reduce(_mounted(), _transcript("hello world"))

    assert new_state.drawer_state is DrawerState.CLOSED
    assert new_state.last_transcript is not None
    assert _non_log(commands) == []


def test_transcript_ignored_when_voice_disabled() -> None:
    state = _mounted(microphone_permission=PermissionStatus.DENIED)
    new_state, commands = reduce(state, _transcript("open menu"))

    assert new_state is state
    assert _decision(commands) == "ignore"


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------

def test_flip_tap_without_camera_is_noop() -> None:
    state = _mounted(camera_active=False)
    new_state, commands = reduce(
        state,
        CameraFlipTap(event_type=EventType.CAMERA_FLIP_TAP, ts_ms=1),
    )

    assert new_state is state
    assert _non_log(commands) == []


def test_flip_tap_requests_toggle_with_new_run() -> None:
    new_state, commands = reduce(
        _mounted(),
        CameraFlipTap(event_type=EventType.CAMERA_FLIP_TAP, ts_ms=1),
    )

    assert new_state.active_runs.camera == 1
    assert _non_log(commands) == [ToggleCameraFacing(run_id=1)]


def test_stale_camera_result_is_ignored() -> None:
    state = _mounted(active_runs=RunIds(camera=2))
    new_state, commands = reduce(
        state,
        CameraFacingChanged(
            event_type=EventType.CAMERA_FACING_CHANGED,
            ts_ms=1,
            service=Service.CAMERA,
            run_id=1,
            facing=CameraFacing.FRONT,
        ),
    )

    assert new_state is state
    assert _decision(commands) == "ignore"


# ---------------------------------------------------------------------------
# Microphone button
# ---------------------------------------------------------------------------

def test_mic_tap_when_denied_raises_notice_without_starting() -> None:
    state = _mounted(microphone_permission=PermissionStatus.DENIED)
    new_state, commands = reduce(state, MicTap(event_type=EventType.MIC_TAP, ts_ms=1))

    assert new_state.notice is not None
    assert new_state.notice.title == NOTICE_MIC_DENIED_TITLE
    assert _non_log(commands) == []


def test_mic_tap_when_unavailable_raises_notice() -> None:
    state = _mounted(speech_available=False)
    new_state, commands = reduce(state, MicTap(event_type=EventType.MIC_TAP, ts_ms=1))

    assert new_state.notice is not None
    assert new_state.notice.title == NOTICE_VOICE_UNAVAILABLE_TITLE
    assert _non_log(commands) == []


def test_mic_tap_starts_listening_optimistically() -> None:
    new_state, commands = reduce(_mounted(), MicTap(event_type=EventType.MIC_TAP, ts_ms=1))

    assert new_state.listen_pending is True
    assert new_state.listening_state is ListeningState.IDLE
    assert _non_log(commands) == [StartListening(run_id=1, locale="en-US")]


def test_second_mic_tap_while_start_in_flight_is_ignored() -> None:
    state = _mounted(listen_pending=True, active_runs=RunIds(speech=1))
    new_state, commands = reduce(state, MicTap(event_type=EventType.MIC_TAP, ts_ms=1))

    assert new_state is state
    assert _non_log(commands) == []


def test_mic_tap_while_listening_stops() -> None:
    state = _mounted(listening_state=ListeningState.LISTENING, active_runs=RunIds(speech=1))
    new_state, commands = reduce(state, MicTap(event_type=EventType.MIC_TAP, ts_ms=1))

    assert _non_log(commands) == [StopListening(run_id=2)]
    assert new_state.active_runs.speech == 2


def test_start_failure_reverts_optimistic_flag_with_notice() -> None:
    state = _mounted(listen_pending=True, active_runs=RunIds(speech=1))
    new_state, _ = reduce(
        state,
        EngineFailed(
            event_type=EventType.ENGINE_FAILED,
            ts_ms=1,
            service=Service.SPEECH,
            run_id=1,
            source=FailureSource.SPEECH_START,
            reason="boom",
        ),
    )

    assert new_state.listen_pending is False
    assert new_state.listening_state is ListeningState.IDLE
    assert new_state.notice is not None
    assert new_state.notice.title == NOTICE_ERROR_TITLE


def test_listening_changed_mirrors_session_report() -> None:
    state = _mounted(listen_pending=True, active_runs=RunIds(speech=1))
    new_state, _ = reduce(
        state,
        ListeningChanged(
            event_type=EventType.LISTENING_CHANGED,
            ts_ms=1,
            service=Service.SPEECH,
            run_id=1,
            listening_state=ListeningState.LISTENING,
        ),
    )

    assert new_state.listening_state is ListeningState.LISTENING
    assert new_state.listen_pending is False


def test_notice_dismissed_clears_notice() -> None:
    state, _ = reduce(
        _mounted(speech_available=False),
        MicTap(event_type=EventType.MIC_TAP, ts_ms=1),
    )
    assert state.notice is not None

    state, _ = reduce(state, NoticeDismissed(event_type=EventType.NOTICE_DISMISSED, ts_ms=2))
    assert state.notice is None


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------

def test_unmount_emits_all_teardown_commands() -> None:
    state = _mounted(listening_state=ListeningState.LISTENING)
    new_state, commands = reduce(
        state,
        UnmountRequested(event_type=EventType.UNMOUNT_REQUESTED, ts_ms=1),
    )

    assert new_state.lifecycle is Lifecycle.UNMOUNTED
    assert new_state.listening_state is ListeningState.IDLE
    assert new_state.camera_active is False
    assert _non_log(commands) == [DisposeSpeech(), ReleaseCamera(), CancelAnimation()]


def test_everything_is_ignored_after_unmount() -> None:
    state = _mounted(lifecycle=Lifecycle.UNMOUNTED)

    for event in (
        DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=1),
        _transcript("open menu"),
        MicTap(event_type=EventType.MIC_TAP, ts_ms=1),
        UnmountRequested(event_type=EventType.UNMOUNT_REQUESTED, ts_ms=1),
    ):
        new_state, commands = reduce(state, event)
        assert new_state is state
        assert _non_log(commands) == []
