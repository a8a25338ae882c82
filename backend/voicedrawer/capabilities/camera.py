"""
Camera session.

Wraps exactly one CameraEngine for the lifetime of one controller mount.

Invariants:
- No handle is ever opened unless camera permission is GRANTED.
- Every successfully opened handle is closed exactly once, including
  when release() races an open that is still in flight.
- The process-wide camera lease is always released by release().
"""

from __future__ import annotations

import asyncio
from typing import Any

from voicedrawer.adapters.base import CameraEngine
from voicedrawer.capabilities.resources import (
    Device,
    DeviceLease,
    DeviceRegistry,
    default_registry,
)
from voicedrawer.errors import EngineError
from voicedrawer.observability.logger import log_event
from voicedrawer.observability.metrics import timed
from voicedrawer.orchestrator.enums.capability import CameraFacing, PermissionStatus


class CameraSession:
    """Single camera capture handle with front/back toggling."""

    def __init__(
        self,
        engine: CameraEngine,
        *,
        owner: str,
        facing: CameraFacing = CameraFacing.BACK,
        registry: DeviceRegistry | None = None,
    ) -> None:
        self._engine = engine
        self._owner = owner
        self._facing = facing
        self._registry = registry or default_registry
        self._lease: DeviceLease | None = None

        self._handle: Any = None
        self._opening: asyncio.Future[Any] | None = None
        self._toggle_lock = asyncio.Lock()
        self._released = False

        self.open_count = 0
        self.close_count = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def facing(self) -> CameraFacing:
        return self._facing

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def released(self) -> bool:
        return self._released

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def initialize(self, permission: PermissionStatus) -> bool:
        """
        Open the capture handle with the current facing.

        Returns False without touching the engine when permission is not
        GRANTED or the session was already released.

        Raises:
            EngineError: the device could not be opened (lease released).
        """
        if permission is not PermissionStatus.GRANTED:
            log_event({
                "event_type": "CAMERA_INIT_SKIPPED",
                "controller_id": self._owner,
                "permission": permission.value,
            })
            return False
        if self._released:
            return False
        if self._handle is not None:
            return True

        self._lease = self._registry.acquire(Device.CAMERA, self._owner)
        try:
            with timed(
                "camera_open",
                controller_id=self._owner,
                details={"facing": self._facing.value},
            ):
                await self._open(self._facing)
        except EngineError:
            self._release_lease()
            raise

        # release() may have run while the open was in flight; it owns
        # closing that handle.
        return not self._released and self._handle is not None

    async def toggle_facing(self) -> CameraFacing:
        """
        Flip front/back on the open handle.

        With no open handle this is a no-op that returns the current facing.
        Overlapping calls run one after another, so each one flips the
        handle the previous call left open.

        Raises:
            EngineError: the handle could not be reopened; the session is
                left with no open handle.
        """
        async with self._toggle_lock:
            return await self._toggle_locked()

    async def release(self) -> None:
        """
        Close the handle and return the lease. Only the first call has effect.

        Waits for an in-flight open so its handle is closed too.

        Raises:
            EngineError: the engine failed to close the handle (the lease is
                released regardless).
        """
        if self._released:
            return
        self._released = True

        try:
            opening = self._opening
            if opening is not None and not opening.done():
                await asyncio.gather(opening, return_exceptions=True)

            handle, self._handle = self._handle, None
            if handle is not None:
                await self._close(handle)
        finally:
            self._release_lease()
            log_event({
                "event_type": "CAMERA_RELEASED",
                "controller_id": self._owner,
                "opens": self.open_count,
                "closes": self.close_count,
            })

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _toggle_locked(self) -> CameraFacing:
        if self._released or self._handle is None:
            log_event({
                "event_type": "CAMERA_TOGGLE_NOOP",
                "controller_id": self._owner,
                "facing": self._facing.value,
            })
            return self._facing

        target = self._facing.flipped()
        handle, self._handle = self._handle, None
        await self._close(handle)

        self._facing = target
        if self._released:
            return self._facing
        await self._open(target)
        if self._released:
            return self._facing

        log_event({
            "event_type": "CAMERA_FACING_TOGGLED",
            "controller_id": self._owner,
            "facing": self._facing.value,
        })
        return self._facing

    async def _open(self, facing: CameraFacing) -> None:
        """
        Open a handle and store it.

        The engine call runs in its own task so the handle is recorded the
        moment the open completes, even if the awaiting caller was
        cancelled; release() then closes it.
        """
        async def _do_open() -> Any:
            handle = await self._engine.open(facing)
            self.open_count += 1
            self._handle = handle
            return handle

        self._opening = asyncio.ensure_future(_do_open())
        try:
            await asyncio.shield(self._opening)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise EngineError(f"camera open failed: {e!r}") from e

    async def _close(self, handle: Any) -> None:
        self.close_count += 1
        try:
            await self._engine.close(handle)
        except Exception as e:
            raise EngineError(f"camera close failed: {e!r}") from e

    def _release_lease(self) -> None:
        if self._lease is not None:
            self._lease.release()
            self._lease = None
