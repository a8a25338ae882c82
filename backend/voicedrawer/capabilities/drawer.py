"""
Drawer animator.

Owns the visual offset of the drawer and animates it toward the committed
DrawerState.

Contract:
- set_open(target) commits the new state immediately; the offset
  interpolation is a transient effect, never state.
- A call while a transition is in flight cancels it and starts a new one
  from the current offset toward the newest target (no queueing).
- set_open(x) when already in state x is a no-op and does not restart
  the animation.
- Duration is a fixed constant, independent of the distance travelled.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from voicedrawer.constants import (
    DRAWER_ANIMATION_DURATION_MS,
    DRAWER_CLOSED_OFFSET,
    DRAWER_FRAME_INTERVAL_MS,
    DRAWER_OPEN_OFFSET,
)
from voicedrawer.orchestrator.enums.state import DrawerState


FrameCallback = Callable[[float], None]


class DrawerAnimator:
    """Open/closed state machine with cancel-and-restart interpolation."""

    def __init__(
        self,
        *,
        duration_ms: int = DRAWER_ANIMATION_DURATION_MS,
        frame_interval_ms: int = DRAWER_FRAME_INTERVAL_MS,
        on_frame: FrameCallback | None = None,
    ) -> None:
        self._duration_ms = max(0, duration_ms)
        self._frame_interval_ms = max(1, frame_interval_ms)
        self._on_frame = on_frame

        self._state = DrawerState.CLOSED
        self._offset = DRAWER_CLOSED_OFFSET
        self._task: asyncio.Task[None] | None = None

        self.transitions_started = 0

    @property
    def state(self) -> DrawerState:
        return self._state

    @property
    def offset(self) -> float:
        """Current visual offset: 0.0 fully closed, 1.0 fully open."""
        return self._offset

    @property
    def is_animating(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_open(self, target: bool) -> bool:
        """
        Move toward the target state.

        Returns True if a new transition started, False for a no-op.
        """
        target_state = DrawerState.OPEN if target else DrawerState.CLOSED
        if target_state is self._state:
            return False

        self._state = target_state
        self._cancel_task()
        self.transitions_started += 1

        end = DRAWER_OPEN_OFFSET if target else DRAWER_CLOSED_OFFSET
        if self._duration_ms == 0:
            self._set_offset(end)
            return True

        self._task = asyncio.ensure_future(self._interpolate(self._offset, end))
        return True

    def cancel(self) -> None:
        """Stop any in-flight transition and snap to the committed state."""
        self._cancel_task()
        self._set_offset(
            DRAWER_OPEN_OFFSET if self._state is DrawerState.OPEN else DRAWER_CLOSED_OFFSET
        )

    async def wait(self) -> None:
        """
        Wait until the drawer has settled.

        A transition that replaces the awaited one is waited for too.
        """
        while self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _set_offset(self, value: float) -> None:
        self._offset = value
        if self._on_frame is not None:
            self._on_frame(value)

    async def _interpolate(self, start: float, end: float) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        duration_s = self._duration_ms / 1000.0

        try:
            while True:
                progress = min(1.0, (loop.time() - started) / duration_s)
                if progress >= 1.0:
                    self._set_offset(end)
                    return
                # Linear; the easing curve is left to the renderer
                self._set_offset(start + (end - start) * progress)
                await asyncio.sleep(self._frame_interval_ms / 1000.0)
        except asyncio.CancelledError:
            # Superseded or torn down; the replacing call owns the offset now
            return
