"""
Platform engine contracts.

This module defines the *interface only*. The capability sessions in
voicedrawer.capabilities wrap these; nothing here knows about the
reducer, run IDs or the drawer.

Key invariants:
- All I/O methods are coroutines on the controller's event loop.
  Engines backed by blocking or threaded SDKs must hop back onto the loop
  before invoking callbacks.
- Engines raise on failure; the wrapping session converts that into
  EngineError.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from voicedrawer.orchestrator.enums.capability import CameraFacing, Capability


ResultCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


@runtime_checkable
class PermissionProvider(Protocol):
    """
    OS-level runtime permission prompt.

    prompts is False on platforms where permission is implicit; the
    gateway then grants without calling request_permission().
    """

    prompts: bool

    async def request_permission(self, capability: Capability) -> bool: ...


@runtime_checkable
class SpeechEngine(Protocol):
    """
    One speech-recognition engine instance.

    Contract:
    - on_result() callbacks fire once per completed utterance, in order.
    - on_error() callbacks fire when the recognition stream dies on its own.
    - dispose() releases native resources; the engine is unusable afterwards.
    """

    async def is_available(self) -> bool: ...

    async def start(self, locale: str) -> None: ...

    async def stop(self) -> None: ...

    def on_result(self, callback: ResultCallback | None) -> None: ...

    def on_error(self, callback: ErrorCallback | None) -> None: ...

    async def dispose(self) -> None: ...


@runtime_checkable
class CameraEngine(Protocol):
    """
    Camera capture device.

    open() returns an opaque handle that must be passed to close()
    exactly once.
    """

    async def open(self, facing: CameraFacing) -> Any: ...

    async def close(self, handle: Any) -> None: ...
