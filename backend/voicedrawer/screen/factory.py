"""
Controller factory.

Builds a DrawerController with engines chosen by configuration. Engine
adapters are imported lazily so a host that injects its own engines never
needs vosk, sounddevice or OpenCV installed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotenv import load_dotenv

from voicedrawer.adapters.permissions import ImplicitPermissionProvider
from voicedrawer.config import AppConfig
from voicedrawer.observability import logger
from voicedrawer.screen.controller import DrawerController

if TYPE_CHECKING:
    from voicedrawer.adapters.base import CameraEngine, PermissionProvider, SpeechEngine
    from voicedrawer.capabilities.resources import DeviceRegistry


def _build_speech_engine(config: AppConfig) -> SpeechEngine:
    if config.speech_engine == "vosk":
        from voicedrawer.adapters.vosk_speech import VoskSpeechEngine

        return VoskSpeechEngine(
            model_path=config.vosk_model_path,
            device_id=config.audio_device_id,
        )
    raise ValueError(f"Unknown SPEECH_ENGINE: {config.speech_engine}")


def _build_camera_engine(config: AppConfig) -> CameraEngine:
    if config.camera_engine == "opencv":
        from voicedrawer.adapters.opencv_camera import OpenCVCameraEngine

        return OpenCVCameraEngine(
            back_index=config.camera_back_index,
            front_index=config.camera_front_index,
        )
    raise ValueError(f"Unknown CAMERA_ENGINE: {config.camera_engine}")


def build_controller(
    config: AppConfig | None = None,
    *,
    permission_provider: PermissionProvider | None = None,
    speech_engine: SpeechEngine | None = None,
    camera_engine: CameraEngine | None = None,
    registry: DeviceRegistry | None = None,
) -> DrawerController:
    """
    Wire a controller for one screen mount.

    Without an explicit config, .env is loaded and the environment read.

    Raises:
        ValueError if an engine name is unknown or a numeric variable is
        not an integer.
    """
    if config is None:
        load_dotenv()
        config = AppConfig.load_from_env()

    logger.configure(enabled=config.enable_json_logs)

    return DrawerController(
        permission_provider=permission_provider or ImplicitPermissionProvider(),
        speech_engine=speech_engine or _build_speech_engine(config),
        camera_engine=camera_engine or _build_camera_engine(config),
        config=config,
        registry=registry,
    )
