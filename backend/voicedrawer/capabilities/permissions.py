"""
Permission gateway.

Requests and caches the grant status of each capability for one
controller mount.

Contract:
- request() never raises: a failing permission channel resolves to DENIED,
  so callers cannot tell "denied" from "request failed".
- Decisions are cached; a second request() returns the cached status
  without prompting again unless force=True.
- Providers without a prompting step grant immediately.
"""

from __future__ import annotations

from voicedrawer.adapters.base import PermissionProvider
from voicedrawer.errors import PermissionDenied
from voicedrawer.observability.logger import log_event
from voicedrawer.observability.metrics import timed
from voicedrawer.orchestrator.enums.capability import Capability, PermissionStatus


class PermissionGateway:
    """Per-mount permission cache in front of a PermissionProvider."""

    def __init__(
        self,
        provider: PermissionProvider,
        *,
        owner: str = "",
    ) -> None:
        self._provider = provider
        self._owner = owner
        self._statuses: dict[Capability, PermissionStatus] = {}
        self.request_count: dict[Capability, int] = {}

    def status(self, capability: Capability) -> PermissionStatus:
        """Cached status; UNKNOWN before the first request resolves."""
        return self._statuses.get(capability, PermissionStatus.UNKNOWN)

    async def request(
        self,
        capability: Capability,
        *,
        force: bool = False,
    ) -> PermissionStatus:
        """
        Resolve the permission for one capability.

        May suspend while the OS shows a prompt.
        """
        cached = self._statuses.get(capability)
        if cached is not None and not force:
            return cached

        if not self._provider.prompts:
            status = PermissionStatus.GRANTED
        else:
            self.request_count[capability] = self.request_count.get(capability, 0) + 1
            status = await self._prompt(capability)

        self._statuses[capability] = status
        log_event({
            "event_type": "PERMISSION_RESOLVED",
            "controller_id": self._owner,
            "capability": capability.value,
            "status": status.value,
            "prompted": self._provider.prompts,
        })
        return status

    async def _prompt(self, capability: Capability) -> PermissionStatus:
        with timed(
            "permission_request",
            controller_id=self._owner,
            details={"capability": capability.value},
        ) as metric:
            try:
                granted = await self._provider.request_permission(capability)
            except PermissionDenied:
                granted = False
            except Exception as e:  # pylint: disable=broad-exception-caught
                # Conservative fallback: a broken channel reads as DENIED
                log_event({
                    "event_type": "PERMISSION_REQUEST_FAILED",
                    "controller_id": self._owner,
                    "capability": capability.value,
                    "error": repr(e),
                })
                granted = False
            metric["granted"] = bool(granted)

        return PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
