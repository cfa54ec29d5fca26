"""
Error taxonomy for the machine tracker.

NotFound is NOT an exception: read paths return None / empty lists.
"""

from typing import Optional


class MachineTrackerError(Exception):
    """Base class for all tracker errors."""
    pass


class ConfigurationError(MachineTrackerError):
    """
    Raised when an operation needs a collaborator that is not configured
    (e.g. refresh requested but no device client bound).

    Fatal to the call. Never retried internally.
    """
    pass


class AdapterError(MachineTrackerError):
    """
    The bound device client failed (connectivity, protocol, auth).

    The original exception is kept on `cause` (and as __cause__ when raised
    with `raise ... from`).
    """

    def __init__(self, machine_id: str, cause: Optional[BaseException] = None, message: str = ""):
        self.machine_id = machine_id
        self.cause = cause
        detail = message or (f"{type(cause).__name__}: {cause}" if cause else "device read failed")
        super().__init__(f"Device read for machine '{machine_id}' failed: {detail}")


class InvariantViolation(MachineTrackerError, ValueError):
    """Programming error: a snapshot or sample broke a data model invariant."""
    pass
