from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Reported when the child exited without a normal status (e.g. killed by a signal).
ABNORMAL_EXIT_CODE = 99


class TransportKind(str, Enum):
    DATAGRAM = "datagram"
    STREAM = "stream"


@dataclass
class ResolvedBinary:
    """Result of a two-pass search path lookup.

    real_path is the binary to execute; search_dir_excluded is the directory
    dropped between the passes (the one holding the shim).
    """
    real_path: str
    search_dir_excluded: str


@dataclass
class LaunchResult:
    exit_code: int
    duration_ms: int
    signal: int | None = None  # set only when the child was killed by a signal

    @property
    def shim_exit_code(self) -> int:
        """Exit status the shim itself should terminate with."""
        if self.signal is not None:
            return 128 + self.signal
        return self.exit_code


@dataclass
class InvocationRecord:
    """One telemetry message describing a single wrapped execution."""
    executable_path: str
    arguments: list[str] = field(default_factory=list)
    duration_ms: int = 0
    exit_code: int = 0
    working_directory: str = ""
