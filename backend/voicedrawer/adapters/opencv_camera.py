"""
OpenCV camera engine.

Desktop stand-in for a front/back camera pair: each facing maps to a
VideoCapture device index. Opening and releasing a capture device blocks,
so both run in the default executor.

Must NOT:
- Check permissions (CameraSession does)
- Track open handles (CameraSession does)
"""

from __future__ import annotations

import asyncio

import cv2

from voicedrawer.constants import CAMERA_BACK_INDEX_DEFAULT, CAMERA_FRONT_INDEX_DEFAULT
from voicedrawer.orchestrator.enums.capability import CameraFacing


class OpenCVCameraEngine:
    """CameraEngine backed by cv2.VideoCapture."""

    def __init__(
        self,
        *,
        back_index: int = CAMERA_BACK_INDEX_DEFAULT,
        front_index: int = CAMERA_FRONT_INDEX_DEFAULT,
    ) -> None:
        self._indices = {
            CameraFacing.BACK: back_index,
            CameraFacing.FRONT: front_index,
        }

    def index_for(self, facing: CameraFacing) -> int:
        return self._indices[facing]

    async def open(self, facing: CameraFacing) -> cv2.VideoCapture:
        index = self.index_for(facing)
        loop = asyncio.get_running_loop()

        def _call() -> cv2.VideoCapture:
            cap = cv2.VideoCapture(index)
            if not cap.isOpened():
                cap.release()
                raise RuntimeError(f"camera index {index} ({facing.value}) could not be opened")
            return cap

        return await loop.run_in_executor(None, _call)

    async def close(self, handle: cv2.VideoCapture) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, handle.release)
