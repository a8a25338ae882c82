"""
Drawer controller (host-facing facade).

Responsibilities:
- Own one mount of the screen: one runtime, one set of capability sessions
- Translate host calls (mount, taps, unmount) into reducer events
- Publish ScreenSnapshot values to subscribers
- Guarantee teardown on every exit path

Not responsible for:
- Any state machine logic (reducer)
- Talking to engines directly (capability sessions)

A controller is single-use: once unmounted it drops every further call.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable
from uuid import uuid4

from voicedrawer.capabilities.camera import CameraSession
from voicedrawer.capabilities.drawer import DrawerAnimator
from voicedrawer.capabilities.permissions import PermissionGateway
from voicedrawer.capabilities.speech import SpeechSession
from voicedrawer.config import AppConfig
from voicedrawer.observability.logger import log_event
from voicedrawer.orchestrator.events import (
    CameraFlipTap,
    DrawerToggleTap,
    Event,
    EventType,
    MicTap,
    MountRequested,
    NoticeDismissed,
    UnmountRequested,
)
from voicedrawer.orchestrator.runtime import Runtime
from voicedrawer.orchestrator.runtime_context import RuntimeExecutionContext
from voicedrawer.orchestrator.state_dataclass import ControllerState
from voicedrawer.screen.snapshot import ScreenSnapshot

if TYPE_CHECKING:
    from voicedrawer.adapters.base import CameraEngine, PermissionProvider, SpeechEngine
    from voicedrawer.capabilities.resources import DeviceRegistry


SnapshotListener = Callable[[ScreenSnapshot], None]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_controller_id() -> str:
    return f"ctl_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# DrawerController
# ------------------------------------------------------------------

class DrawerController:
    """
    One controller == one screen mount.

    Usage:

        async with build_controller() as controller:
            controller.subscribe(render)
            await controller.on_drawer_toggle_tap()
    """

    def __init__(
        self,
        *,
        permission_provider: PermissionProvider,
        speech_engine: SpeechEngine,
        camera_engine: CameraEngine,
        config: AppConfig | None = None,
        registry: DeviceRegistry | None = None,
        controller_id: str | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._controller_id = controller_id or _new_controller_id()

        self._permissions = PermissionGateway(permission_provider, owner=self._controller_id)
        self._speech = SpeechSession(
            speech_engine,
            owner=self._controller_id,
            registry=registry,
        )
        self._camera = CameraSession(
            camera_engine,
            owner=self._controller_id,
            registry=registry,
        )
        self._drawer = DrawerAnimator(
            duration_ms=self._config.drawer_animation_duration_ms,
            on_frame=self._on_frame,
        )

        self._runtime = Runtime(
            initial_state=ControllerState(
                recognition_locale=self._config.recognition_locale,
                open_phrase=self._config.open_phrase,
                close_phrase=self._config.close_phrase,
            ),
            context=RuntimeExecutionContext(
                controller_id=self._controller_id,
                permissions=self._permissions,
                speech=self._speech,
                camera=self._camera,
                drawer=self._drawer,
            ),
            on_state_changed=self._on_state_changed,
        )

        self._listeners: list[SnapshotListener] = []
        self._mount_task: asyncio.Task[None] | None = None
        self._mount_called = False
        self._unmount_started = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def controller_id(self) -> str:
        return self._controller_id

    @property
    def state(self) -> ControllerState:
        return self._runtime.state

    @property
    def snapshot(self) -> ScreenSnapshot:
        return ScreenSnapshot.from_state(self._runtime.state, drawer_offset=self._drawer.offset)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a snapshot listener.

        Returns a function that removes it again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def wait_for_animation(self) -> None:
        """Wait until the drawer offset settled on the committed state."""
        await self._drawer.wait()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        """
        Run the mount sequence: permissions, availability, camera, subscription.

        Never raises for engine failures. If the mount itself fails or is
        cancelled, the controller is unmounted before returning.
        """
        if self._mount_called or self._unmount_started:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MOUNT_IGNORED",
                "controller_id": self._controller_id,
                "reason": "unmounted" if self._unmount_started else "already_mounted",
            })
            return
        self._mount_called = True

        self._mount_task = asyncio.ensure_future(
            self._runtime.handle_event(
                MountRequested(
                    event_type=EventType.MOUNT_REQUESTED,
                    ts_ms=_now_ms(),
                    controller_id=self._controller_id,
                )
            )
        )

        try:
            await self._mount_task
        except asyncio.CancelledError:
            if self._unmount_started:
                # unmount() aborted the sequence and owns teardown
                return
            await self.unmount(reason="mount_cancelled")
            raise
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MOUNT_FAILED",
                "controller_id": self._controller_id,
                "error": repr(e),
            })
            await self.unmount(reason="mount_failed")

    async def unmount(self, reason: str | None = None) -> None:
        """
        Tear everything down. Only the first call has effect.

        Order:
        1. Cancel the in-flight mount sequence
        2. Cancel pending event tasks (host taps, transcripts, stream errors)
        3. Dispose speech, release camera, cancel the animation
        """
        if self._unmount_started:
            return
        self._unmount_started = True

        mount_task = self._mount_task
        if (
            mount_task is not None
            and not mount_task.done()
            and mount_task is not asyncio.current_task()
        ):
            mount_task.cancel()
            await asyncio.gather(mount_task, return_exceptions=True)

        await self._runtime.shutdown()
        await self._runtime.handle_event(
            UnmountRequested(
                event_type=EventType.UNMOUNT_REQUESTED,
                ts_ms=_now_ms(),
                reason=reason,
            )
        )

    async def __aenter__(self) -> DrawerController:
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount(reason="context_exit" if exc is None else f"error:{exc_type.__name__}")

    # ------------------------------------------------------------------
    # Host input
    # ------------------------------------------------------------------

    async def on_drawer_toggle_tap(self) -> None:
        await self._dispatch(
            DrawerToggleTap(event_type=EventType.DRAWER_TOGGLE_TAP, ts_ms=_now_ms())
        )

    async def on_camera_flip_tap(self) -> None:
        await self._dispatch(
            CameraFlipTap(event_type=EventType.CAMERA_FLIP_TAP, ts_ms=_now_ms())
        )

    async def on_mic_tap(self) -> None:
        await self._dispatch(MicTap(event_type=EventType.MIC_TAP, ts_ms=_now_ms()))

    async def dismiss_notice(self) -> None:
        await self._dispatch(
            NoticeDismissed(event_type=EventType.NOTICE_DISMISSED, ts_ms=_now_ms())
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _dispatch(self, event: Event) -> None:
        await self._runtime.dispatch(event)

    def _on_state_changed(self, _state: ControllerState) -> None:
        self._publish()

    def _on_frame(self, _offset: float) -> None:
        # Teardown snaps the drawer; the UNMOUNTED snapshot was the last one
        if self._runtime.closed:
            return
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return

        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "SNAPSHOT_LISTENER_FAILED",
                    "controller_id": self._controller_id,
                    "error": repr(e),
                })
