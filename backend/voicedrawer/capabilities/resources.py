"""
Process-wide device ownership.

Most platforms allow one active recognition session and one camera
consumer at a time. Instead of treating that as an implicit global, each
session takes an explicit lease from a DeviceRegistry and must release it
before another owner can acquire the same device.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from voicedrawer.errors import DeviceBusy
from voicedrawer.observability.logger import log_event


class Device(str, Enum):
    """Process-wide singleton devices."""

    SPEECH_ENGINE = "SPEECH_ENGINE"
    CAMERA = "CAMERA"


@dataclass
class DeviceLease:
    """
    Proof of ownership of one device.

    release() is idempotent; only the first call frees the device.
    """

    device: Device
    owner: str
    _registry: DeviceRegistry
    released: bool = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._registry._release(self)  # pylint: disable=protected-access


class DeviceRegistry:
    """
    Tracks which owner currently holds each device.

    Not thread-safe; all callers run on the controller's event loop.
    """

    def __init__(self) -> None:
        self._leases: dict[Device, DeviceLease] = {}

    def acquire(self, device: Device, owner: str) -> DeviceLease:
        """
        Take ownership of a device.

        An owner that already holds the device gets its existing lease back.

        Raises:
            DeviceBusy if another owner still holds it.
        """
        current = self._leases.get(device)
        if current is not None and current.owner == owner:
            return current
        if current is not None:
            holder = current.owner
            log_event({
                "event_type": "DEVICE_BUSY",
                "device": device.value,
                "owner": owner,
                "holder": holder,
            })
            raise DeviceBusy(f"{device.value} is held by {holder}")

        lease = DeviceLease(device=device, owner=owner, _registry=self)
        self._leases[device] = lease
        log_event({
            "event_type": "DEVICE_ACQUIRED",
            "device": device.value,
            "owner": owner,
        })
        return lease

    def holder(self, device: Device) -> str | None:
        """Return the current owner of a device, if any."""
        lease = self._leases.get(device)
        return lease.owner if lease is not None else None

    def _release(self, lease: DeviceLease) -> None:
        if self._leases.get(lease.device) is lease:
            del self._leases[lease.device]
            log_event({
                "event_type": "DEVICE_RELEASED",
                "device": lease.device.value,
                "owner": lease.owner,
            })


# Shared by every controller in the process unless a test injects its own.
default_registry = DeviceRegistry()
