"""
Runtime execution context.

Gives the Runtime live access to the capability sessions owned by one
controller mount.

This module contains:
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voicedrawer.capabilities.camera import CameraSession
    from voicedrawer.capabilities.drawer import DrawerAnimator
    from voicedrawer.capabilities.permissions import PermissionGateway
    from voicedrawer.capabilities.speech import SpeechSession


@dataclass(frozen=True)
class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    Runtime is allowed to:
    - Call the sessions
    - Read their self-reported state

    Runtime is NOT allowed to:
    - Make orchestration decisions
    - Share these sessions with another controller
    """

    controller_id: str
    permissions: PermissionGateway
    speech: SpeechSession
    camera: CameraSession
    drawer: DrawerAnimator
