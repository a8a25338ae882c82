# pyright: reportUnknownMemberType=false
"""
Vosk speech engine.

Offline recognition from the default (or configured) input device:
- sounddevice delivers raw int16 blocks on the PortAudio thread
- a worker thread feeds them to a KaldiRecognizer
- each completed utterance is handed back to the event loop

The model language is fixed when the model is downloaded; the locale
passed to start() is only recorded.

Must NOT:
- Decide what a transcript means
- Keep listening state for the controller (SpeechSession does)
"""

from __future__ import annotations

import asyncio
import json
import os
import queue
import threading
from typing import Any

import vosk

from voicedrawer.adapters.base import ErrorCallback, ResultCallback
from voicedrawer.constants import (
    VOSK_BLOCKSIZE,
    VOSK_MODEL_PATH_DEFAULT,
    VOSK_SAMPLE_RATE_HZ,
)


class VoskSpeechEngine:
    """SpeechEngine backed by vosk + sounddevice."""

    _QUEUE_POLL_S = 0.1
    _JOIN_TIMEOUT_S = 2.0

    def __init__(
        self,
        *,
        model_path: str = VOSK_MODEL_PATH_DEFAULT,
        device_id: int | None = None,
        sample_rate: int = VOSK_SAMPLE_RATE_HZ,
        blocksize: int = VOSK_BLOCKSIZE,
    ) -> None:
        self._model_path = model_path
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._blocksize = blocksize

        self._model: vosk.Model | None = None
        self._stream: Any = None
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._q: queue.Queue[bytes] = queue.Queue()
        self._stream_lock = threading.Lock()
        self._disposed = False

        self._loop: asyncio.AbstractEventLoop | None = None
        self._on_result: ResultCallback | None = None
        self._on_error: ErrorCallback | None = None

        self.locale: str | None = None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_result(self, callback: ResultCallback | None) -> None:
        self._on_result = callback

    def on_error(self, callback: ErrorCallback | None) -> None:
        self._on_error = callback

    # ------------------------------------------------------------------
    # SpeechEngine
    # ------------------------------------------------------------------

    async def is_available(self) -> bool:
        """Model directory present and loadable, and an input device exists."""
        if not os.path.isdir(self._model_path):
            return False

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._load)
        return True

    async def start(self, locale: str) -> None:
        if self._disposed:
            raise RuntimeError("vosk engine is disposed")
        if self._running.is_set():
            return

        self.locale = locale
        self._loop = asyncio.get_running_loop()
        await self._loop.run_in_executor(None, self._open_stream)
        if self._disposed:
            await self._loop.run_in_executor(None, self._close_stream)
            raise RuntimeError("vosk engine was disposed during start")

        self._thread = threading.Thread(target=self._recognition_loop, daemon=True)
        self._thread.start()

    async def stop(self) -> None:
        if not self._running.is_set() and self._stream is None:
            return

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._close_stream)

    async def dispose(self) -> None:
        self._disposed = True
        await self.stop()
        self._on_result = None
        self._on_error = None
        self._model = None

    # ------------------------------------------------------------------
    # Blocking helpers (executor / worker thread)
    # ------------------------------------------------------------------

    def _load(self) -> None:
        import sounddevice as sd

        # Raises if no input device is present
        sd.query_devices(self._device_id, "input")
        if self._model is None:
            vosk.SetLogLevel(-1)
            self._model = vosk.Model(self._model_path)

    def _open_stream(self) -> None:
        import sounddevice as sd

        if self._disposed:
            return
        self._load()
        while not self._q.empty():
            self._q.get_nowait()

        stream = sd.RawInputStream(
            samplerate=self._sample_rate,
            blocksize=self._blocksize,
            dtype="int16",
            channels=1,
            device=self._device_id,
            callback=self._audio_callback,
        )
        stream.start()
        with self._stream_lock:
            self._stream = stream
            self._running.set()

        # dispose() may have found no stream while this one was opening
        if self._disposed:
            self._close_stream()

    def _close_stream(self) -> None:
        self._running.clear()

        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._JOIN_TIMEOUT_S)

        with self._stream_lock:
            stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            finally:
                stream.close()

    def _audio_callback(self, indata, frames, time_info, status) -> None:  # pylint: disable=unused-argument
        self._q.put(bytes(indata))

    def _recognition_loop(self) -> None:
        recognizer = vosk.KaldiRecognizer(self._model, self._sample_rate)

        try:
            while self._running.is_set():
                try:
                    data = self._q.get(timeout=self._QUEUE_POLL_S)
                except queue.Empty:
                    continue

                if recognizer.AcceptWaveform(data):
                    text = json.loads(recognizer.Result()).get("text", "")
                    if text:
                        self._post(self._emit_result, text)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._running.clear()
            self._post(self._emit_error, e)

    # ------------------------------------------------------------------
    # Loop hand-off
    # ------------------------------------------------------------------

    def _post(self, fn: Any, arg: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(fn, arg)

    def _emit_result(self, text: str) -> None:
        callback = self._on_result
        if callback is not None:
            callback(text)

    def _emit_error(self, error: Exception) -> None:
        callback = self._on_error
        if callback is not None:
            callback(error)
