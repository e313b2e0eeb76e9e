"""Error types.

Fatal errors (ShimError) stop the shim before or instead of delegation and
map to a distinct process exit code. ReportTransportError is best-effort
telemetry failure and never leaves the reporter.
"""
from __future__ import annotations


class ShimError(Exception):
    exit_code = 1


class ResolutionError(ShimError):
    """The invoked name could not be found on the search path."""
    exit_code = 127


class RecursionGuardError(ShimError):
    """The only binary matching the invoked name is the shim itself."""
    exit_code = 125


class LaunchError(ShimError):
    """The real binary could not be spawned."""
    exit_code = 126


class ReportTransportError(Exception):
    """Connecting, sending or receiving on a telemetry channel failed."""

    def __init__(self, phase: str, cause: BaseException):
        super().__init__(f"{phase}: {cause}")
        self.phase = phase
        self.cause = cause
