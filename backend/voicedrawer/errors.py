"""
Controller error taxonomy.

None of these are fatal to the process. Permission and availability
failures are resolved into degraded-capability flags; engine failures
are converted into a one-shot user notice at the call site.
"""

from __future__ import annotations


class ControllerError(Exception):
    """Base class for all controller errors."""


class PermissionDenied(ControllerError):
    """User or OS declined a capability."""


class SessionUnavailable(ControllerError):
    """Speech engine absent on this device (or availability never confirmed)."""


class SessionBusy(ControllerError):
    """start() called while already listening."""


class EngineError(ControllerError):
    """An underlying platform engine call failed."""


class DeviceBusy(EngineError):
    """A process-wide device is still held by another owner."""
