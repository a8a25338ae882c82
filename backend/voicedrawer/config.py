"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No runtime mutation
- No .env loading (done once by the factory)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from voicedrawer.constants import (
    CAMERA_BACK_INDEX_DEFAULT,
    CAMERA_ENGINE_DEFAULT,
    CAMERA_FRONT_INDEX_DEFAULT,
    CLOSE_PHRASE,
    DRAWER_ANIMATION_DURATION_MS,
    OPEN_PHRASE,
    RECOGNITION_LOCALE,
    SPEECH_ENGINE_DEFAULT,
    VOSK_MODEL_PATH_DEFAULT,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable controller configuration.

    Constructed once by the hosting screen and passed downward to the
    controller factory.
    """

    # ------------------------------------------------------------------
    # Behavior
    # ------------------------------------------------------------------

    drawer_animation_duration_ms: int = DRAWER_ANIMATION_DURATION_MS
    recognition_locale: str = RECOGNITION_LOCALE
    open_phrase: str = OPEN_PHRASE
    close_phrase: str = CLOSE_PHRASE

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Engines
    # ------------------------------------------------------------------

    speech_engine: str = SPEECH_ENGINE_DEFAULT
    camera_engine: str = CAMERA_ENGINE_DEFAULT
    vosk_model_path: str = VOSK_MODEL_PATH_DEFAULT
    audio_device_id: int | None = None
    camera_back_index: int = CAMERA_BACK_INDEX_DEFAULT
    camera_front_index: int = CAMERA_FRONT_INDEX_DEFAULT

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Unset variables fall back to the constants.

        Raises:
            ValueError if a numeric variable is not an integer.
        """
        audio_device = os.environ.get("AUDIO_DEVICE_ID")

        return AppConfig(
            drawer_animation_duration_ms=int(
                os.environ.get(
                    "DRAWER_ANIMATION_DURATION_MS",
                    str(DRAWER_ANIMATION_DURATION_MS),
                )
            ),
            recognition_locale=os.environ.get("RECOGNITION_LOCALE", RECOGNITION_LOCALE),
            open_phrase=os.environ.get("OPEN_PHRASE", OPEN_PHRASE),
            close_phrase=os.environ.get("CLOSE_PHRASE", CLOSE_PHRASE),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            speech_engine=os.environ.get("SPEECH_ENGINE", SPEECH_ENGINE_DEFAULT),
            camera_engine=os.environ.get("CAMERA_ENGINE", CAMERA_ENGINE_DEFAULT),
            vosk_model_path=os.environ.get("VOSK_MODEL_PATH", VOSK_MODEL_PATH_DEFAULT),
            audio_device_id=int(audio_device) if audio_device else None,
            camera_back_index=int(
                os.environ.get("CAMERA_BACK_INDEX", str(CAMERA_BACK_INDEX_DEFAULT))
            ),
            camera_front_index=int(
                os.environ.get("CAMERA_FRONT_INDEX", str(CAMERA_FRONT_INDEX_DEFAULT))
            ),
        )
