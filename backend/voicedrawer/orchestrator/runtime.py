"""
Runtime execution shell for a single controller mount.

Responsibilities:
- Own controller state
- Call the pure reducer
- Execute commands with side effects (permissions, speech, camera, drawer)
- Convert device results into events and feed them back in order
- Drop anything that arrives after teardown

Non-responsibilities:
- No orchestration decisions (reducer only)
- No host-facing API (see screen.controller)
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable

from voicedrawer.errors import EngineError, SessionBusy, SessionUnavailable
from voicedrawer.observability.logger import log_event
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
from voicedrawer.orchestrator.enums.service import FailureSource, Service
from voicedrawer.orchestrator.enums.state import Lifecycle
from voicedrawer.orchestrator.events import (
    CameraFacingChanged,
    CameraOpened,
    CameraSkipped,
    EngineFailed,
    Event,
    EventType,
    ListeningChanged,
    PermissionResolved,
    SpeechAvailabilityResolved,
    TranscriptReceived,
)
from voicedrawer.orchestrator.reducer import reduce
from voicedrawer.orchestrator.state_dataclass import ControllerState, Transcript

if TYPE_CHECKING:
    from voicedrawer.orchestrator.runtime_context import RuntimeExecutionContext


StateListener = Callable[[ControllerState], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Runtime:
    """
    Runtime execution boundary for a single controller mount.

    Guarantees:
    - Reducer is called exactly once per accepted event
    - State is swapped before any side effect of that event runs
    - Commands run in reducer-emitted order; a failing command is logged
      and the remaining commands still run (teardown relies on this)
    - Device results re-enter through handle_event() after the commands
      of the current event have finished, so the mount sequence is
      strictly ordered
    - After teardown every event is dropped and logged
    """

    def __init__(
        self,
        *,
        initial_state: ControllerState,
        context: RuntimeExecutionContext,
        on_state_changed: StateListener | None = None,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        self._on_state_changed = on_state_changed
        self._closed = False
        self._shutting_down = False
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ControllerState:
        """
        Current immutable controller state.

        Only the reducer (through handle_event) ever replaces it.
        """
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    async def handle_event(self, event: Event) -> None:
        """
        Process a single event through the orchestration pipeline.

        1. Reduce (state, event) -> (new_state, commands)
        2. Swap in the new state and notify the listener
        3. Execute commands sequentially
        4. Feed resulting device events back in, in order
        """
        if self._closed:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "EVENT_DROPPED_AFTER_TEARDOWN",
                "controller_id": self._ctx.controller_id,
                "dropped_event": event.event_type.value,
            })
            return

        new_state, commands = reduce(self._state, event)
        changed = new_state != self._state
        self._state = new_state

        if new_state.lifecycle is Lifecycle.UNMOUNTED:
            self._closed = True

        if changed and self._on_state_changed is not None:
            self._on_state_changed(new_state)

        follow_ups: list[Event] = []
        for cmd in commands:
            try:
                follow_up = await self._execute_command(cmd)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "COMMAND_FAILED",
                    "controller_id": self._ctx.controller_id,
                    "command_type": cmd.command_type.value,
                    "error": repr(exc),
                })
                continue
            if follow_up is not None:
                follow_ups.append(follow_up)

        for follow_up in follow_ups:
            await self.handle_event(follow_up)

    def spawn(self, event: Event) -> None:
        """
        Schedule an event raised from a synchronous callback.

        Tasks are tracked so shutdown() can cancel them.
        """
        self._track(event)

    async def dispatch(self, event: Event) -> None:
        """
        Handle a host event in a tracked task and wait for it.

        If shutdown() cancels the task (e.g. a speech start still in
        flight), the call returns quietly. Cancelling the caller still
        cancels the event.
        """
        task = self._track(event)
        if task is None:
            return

        try:
            await task
        except asyncio.CancelledError:
            if self._shutting_down and task.cancelled():
                return
            raise

    async def shutdown(self) -> None:
        """
        Cancel all in-flight event tasks and wait for them to finish.

        Called by the controller before the teardown event.
        """
        self._shutting_down = True
        tasks = [t for t in self._pending if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    def _track(self, event: Event) -> asyncio.Task[None] | None:
        if self._closed or self._shutting_down:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "EVENT_DROPPED_AFTER_TEARDOWN",
                "controller_id": self._ctx.controller_id,
                "dropped_event": event.event_type.value,
            })
            return None

        task = asyncio.ensure_future(self.handle_event(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    # ------------------------------------------------------------------
    # Session callbacks
    # ------------------------------------------------------------------

    def _on_transcript(self, transcript: Transcript) -> None:
        self.spawn(
            TranscriptReceived(
                event_type=EventType.TRANSCRIPT_RECEIVED,
                ts_ms=transcript.ts_ms,
                transcript=transcript,
            )
        )

    def _on_speech_error(self, error: EngineError) -> None:
        self.spawn(
            EngineFailed(
                event_type=EventType.ENGINE_FAILED,
                ts_ms=_now_ms(),
                service=Service.SPEECH,
                run_id=self._state.active_runs.speech,
                source=FailureSource.SPEECH_STREAM,
                reason=str(error),
            )
        )

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> Event | None:  # pylint: disable=too-many-return-statements,too-many-branches
        """Execute a single command; return the device result as an event."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "controller_id": self._ctx.controller_id,
            })
            return None

        # ------------------------------------------------------------
        # Permissions
        # ------------------------------------------------------------

        if isinstance(cmd, RequestPermission):
            status = await self._ctx.permissions.request(cmd.capability)
            return PermissionResolved(
                event_type=EventType.PERMISSION_RESOLVED,
                ts_ms=_now_ms(),
                capability=cmd.capability,
                status=status,
            )

        # ------------------------------------------------------------
        # Speech
        # ------------------------------------------------------------

        if isinstance(cmd, CheckSpeechAvailability):
            available = await self._ctx.speech.check_availability()
            return SpeechAvailabilityResolved(
                event_type=EventType.SPEECH_AVAILABILITY_RESOLVED,
                ts_ms=_now_ms(),
                available=available,
            )

        if isinstance(cmd, SubscribeTranscripts):
            self._ctx.speech.on_result(self._on_transcript)
            self._ctx.speech.on_error(self._on_speech_error)
            return None

        if isinstance(cmd, StartListening):
            try:
                await self._ctx.speech.start(cmd.locale)
            except SessionBusy as exc:
                # Race between two start requests; the session already listens
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "SPEECH_SESSION_BUSY",
                    "controller_id": self._ctx.controller_id,
                    "speech_run_id": cmd.run_id,
                    "error": str(exc),
                })
            except SessionUnavailable as exc:
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "SPEECH_SESSION_UNAVAILABLE",
                    "controller_id": self._ctx.controller_id,
                    "speech_run_id": cmd.run_id,
                    "error": str(exc),
                })
            except EngineError as exc:
                return self._engine_failed(
                    Service.SPEECH, cmd.run_id, FailureSource.SPEECH_START, exc
                )
            return self._listening_report(cmd.run_id)

        if isinstance(cmd, StopListening):
            try:
                await self._ctx.speech.stop()
            except EngineError as exc:
                return self._engine_failed(
                    Service.SPEECH, cmd.run_id, FailureSource.SPEECH_STOP, exc
                )
            return self._listening_report(cmd.run_id)

        if isinstance(cmd, DisposeSpeech):
            await self._ctx.speech.dispose()
            return None

        # ------------------------------------------------------------
        # Camera
        # ------------------------------------------------------------

        if isinstance(cmd, InitializeCamera):
            try:
                opened = await self._ctx.camera.initialize(cmd.permission)
            except EngineError as exc:
                return self._engine_failed(
                    Service.CAMERA, cmd.run_id, FailureSource.CAMERA_OPEN, exc
                )
            if opened:
                return CameraOpened(
                    event_type=EventType.CAMERA_OPENED,
                    ts_ms=_now_ms(),
                    service=Service.CAMERA,
                    run_id=cmd.run_id,
                    facing=self._ctx.camera.facing,
                )
            return CameraSkipped(
                event_type=EventType.CAMERA_SKIPPED,
                ts_ms=_now_ms(),
                service=Service.CAMERA,
                run_id=cmd.run_id,
            )

        if isinstance(cmd, ToggleCameraFacing):
            try:
                facing = await self._ctx.camera.toggle_facing()
            except EngineError as exc:
                return self._engine_failed(
                    Service.CAMERA, cmd.run_id, FailureSource.CAMERA_TOGGLE, exc
                )
            return CameraFacingChanged(
                event_type=EventType.CAMERA_FACING_CHANGED,
                ts_ms=_now_ms(),
                service=Service.CAMERA,
                run_id=cmd.run_id,
                facing=facing,
                camera_active=self._ctx.camera.is_open,
            )

        if isinstance(cmd, ReleaseCamera):
            try:
                await self._ctx.camera.release()
            except EngineError as exc:
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "CAMERA_RELEASE_FAILED",
                    "controller_id": self._ctx.controller_id,
                    "error": str(exc),
                })
            return None

        # ------------------------------------------------------------
        # Drawer
        # ------------------------------------------------------------

        if isinstance(cmd, AnimateDrawer):
            self._ctx.drawer.set_open(cmd.open)
            return None

        if isinstance(cmd, CancelAnimation):
            self._ctx.drawer.cancel()
            return None

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "COMMAND_NOT_IMPLEMENTED",
            "controller_id": self._ctx.controller_id,
            "command_type": type(cmd).__name__,
        })
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _listening_report(self, run_id: int) -> ListeningChanged:
        return ListeningChanged(
            event_type=EventType.LISTENING_CHANGED,
            ts_ms=_now_ms(),
            service=Service.SPEECH,
            run_id=run_id,
            listening_state=self._ctx.speech.listening_state,
        )

    def _engine_failed(
        self,
        service: Service,
        run_id: int,
        source: FailureSource,
        exc: EngineError,
    ) -> EngineFailed:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "ENGINE_CALL_FAILED",
            "controller_id": self._ctx.controller_id,
            "source": source.value,
            "run_id": run_id,
            "error": str(exc),
        })
        return EngineFailed(
            event_type=EventType.ENGINE_FAILED,
            ts_ms=_now_ms(),
            service=service,
            run_id=run_id,
            source=source,
            reason=str(exc),
        )
