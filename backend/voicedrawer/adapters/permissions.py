"""
Permission providers.

Desktop platforms have no runtime permission prompt: access to the
microphone and camera is implicit. Hosts with a real prompt (a GUI dialog,
a mobile shell) plug in their own coroutine through
CallbackPermissionProvider.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from voicedrawer.orchestrator.enums.capability import Capability


PromptCallback = Callable[[Capability], Awaitable[bool]]


class ImplicitPermissionProvider:
    """No prompting step; PermissionGateway grants without calling in."""

    prompts = False

    async def request_permission(self, capability: Capability) -> bool:
        return True


class CallbackPermissionProvider:
    """
    Delegates each prompt to a host coroutine.

    The coroutine returns True for granted and False for declined. It may
    also raise PermissionDenied; any other exception is treated as a
    broken permission channel and resolves to DENIED as well.
    """

    prompts = True

    def __init__(self, prompt: PromptCallback) -> None:
        self._prompt = prompt

    async def request_permission(self, capability: Capability) -> bool:
        return bool(await self._prompt(capability))
