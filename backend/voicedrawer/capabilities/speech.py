"""
Speech session.

Wraps exactly one SpeechEngine for the lifetime of one controller mount.

Responsibilities:
- Own ListeningState (callers observe it, never set it)
- Guard start() with the availability check and the busy check
- Turn engine results into Transcript values for a single subscriber
- Hold the process-wide speech-engine lease until dispose()

Non-responsibilities:
- No intent matching
- No drawer or UI decisions
"""

from __future__ import annotations

import time
from typing import Callable

from voicedrawer.adapters.base import SpeechEngine
from voicedrawer.capabilities.resources import (
    Device,
    DeviceLease,
    DeviceRegistry,
    default_registry,
)
from voicedrawer.errors import EngineError, SessionBusy, SessionUnavailable
from voicedrawer.observability.logger import log_event
from voicedrawer.observability.metrics import timed
from voicedrawer.orchestrator.enums.state import ListeningState
from voicedrawer.orchestrator.state_dataclass import Transcript


TranscriptCallback = Callable[[Transcript], None]
SessionErrorCallback = Callable[[EngineError], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SpeechSession:
    """
    Single-engine speech recognition session.

    Lifecycle:
    1. check_availability()  (acquires the engine lease)
    2. start(locale) / stop() any number of times
    3. dispose()             (exactly once; releases the lease)
    """

    def __init__(
        self,
        engine: SpeechEngine,
        *,
        owner: str,
        registry: DeviceRegistry | None = None,
    ) -> None:
        self._engine = engine
        self._owner = owner
        self._registry = registry or default_registry
        self._lease: DeviceLease | None = None

        self._available: bool | None = None
        self._state = ListeningState.IDLE
        self._disposed = False

        self._on_result: TranscriptCallback | None = None
        self._on_error: SessionErrorCallback | None = None

        self.start_count = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def listening_state(self) -> ListeningState:
        return self._state

    @property
    def available(self) -> bool | None:
        """Cached availability; None until checked."""
        return self._available

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Subscriptions (single subscriber each)
    # ------------------------------------------------------------------

    def on_result(self, callback: TranscriptCallback | None) -> None:
        """
        Subscribe to completed utterances.

        A new subscription replaces the previous one.
        """
        self._on_result = callback
        self._engine.on_result(self._handle_result if callback is not None else None)

    def on_error(self, callback: SessionErrorCallback | None) -> None:
        """Subscribe to stream failures that end listening on their own."""
        self._on_error = callback
        self._engine.on_error(self._handle_error if callback is not None else None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check_availability(self) -> bool:
        """
        Ask the engine whether recognition works on this device.

        Engine errors and a held engine lease resolve to False.
        """
        if self._disposed:
            return False

        try:
            if self._lease is None:
                self._lease = self._registry.acquire(Device.SPEECH_ENGINE, self._owner)
            with timed("speech_availability_check", controller_id=self._owner) as metric:
                available = bool(await self._engine.is_available())
                metric["available"] = available
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SPEECH_AVAILABILITY_FAILED",
                "controller_id": self._owner,
                "error": repr(e),
            })
            available = False

        self._available = available
        return available

    async def start(self, locale: str) -> None:
        """
        Begin streaming recognition.

        Raises:
            SessionUnavailable: availability not confirmed, or disposed
                (also when dispose() lands while the engine is starting).
            SessionBusy: already LISTENING.
            EngineError: the engine refused to start; state stays IDLE.
        """
        if self._disposed or not self._available:
            raise SessionUnavailable("speech recognition is not available")
        if self._state is ListeningState.LISTENING:
            raise SessionBusy("speech session is already listening")

        self.start_count += 1
        try:
            await self._engine.start(locale)
        except Exception as e:
            self._state = ListeningState.IDLE
            raise EngineError(f"speech start failed: {e!r}") from e

        if self._disposed:
            # dispose() ran while the engine was starting and skipped stop()
            try:
                await self._engine.stop()
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "SPEECH_STOP_AFTER_DISPOSE_FAILED",
                    "controller_id": self._owner,
                    "error": repr(e),
                })
            raise SessionUnavailable("speech session was disposed during start")

        self._state = ListeningState.LISTENING
        log_event({
            "event_type": "SPEECH_STARTED",
            "controller_id": self._owner,
            "locale": locale,
        })

    async def stop(self) -> None:
        """
        Stop streaming recognition. No-op when IDLE.

        Raises:
            EngineError: the engine failed to stop; state is IDLE regardless.
        """
        if self._state is ListeningState.IDLE:
            return

        self._state = ListeningState.IDLE
        try:
            await self._engine.stop()
        except Exception as e:
            raise EngineError(f"speech stop failed: {e!r}") from e

        log_event({
            "event_type": "SPEECH_STOPPED",
            "controller_id": self._owner,
        })

    async def dispose(self) -> None:
        """
        Release the engine and the lease. Only the first call has effect.

        Engine failures are logged; the lease is released regardless.
        """
        if self._disposed:
            return
        self._disposed = True

        self._on_result = None
        self._on_error = None
        was_listening = self._state is ListeningState.LISTENING
        self._state = ListeningState.IDLE

        if was_listening:
            try:
                await self._engine.stop()
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "SPEECH_STOP_ON_DISPOSE_FAILED",
                    "controller_id": self._owner,
                    "error": repr(e),
                })

        try:
            self._engine.on_result(None)
            self._engine.on_error(None)
            await self._engine.dispose()
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SPEECH_DISPOSE_FAILED",
                "controller_id": self._owner,
                "error": repr(e),
            })
        finally:
            if self._lease is not None:
                self._lease.release()
                self._lease = None

        log_event({
            "event_type": "SPEECH_DISPOSED",
            "controller_id": self._owner,
        })

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def _handle_result(self, text: str) -> None:
        callback = self._on_result
        if self._disposed or callback is None:
            return

        text = (text or "").strip()
        if not text:
            return

        callback(Transcript(text=text, ts_ms=_now_ms()))

    def _handle_error(self, error: Exception) -> None:
        callback = self._on_error
        if self._disposed:
            return

        self._state = ListeningState.IDLE
        log_event({
            "event_type": "SPEECH_STREAM_FAILED",
            "controller_id": self._owner,
            "error": repr(error),
        })
        if callback is not None:
            callback(EngineError(f"speech stream failed: {error!r}"))
