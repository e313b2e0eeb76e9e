"""Run the real binary with the shim's own stdio and time it."""
from __future__ import annotations

import logging
import signal
import subprocess
import time
from contextlib import contextmanager

from intel_invoke.errors import LaunchError
from intel_invoke.models import ABNORMAL_EXIT_CODE, LaunchResult

logger = logging.getLogger(__name__)

# Terminal-generated signals go to the whole foreground process group. The
# child decides how to react; the shim keeps waiting so it can report.
_FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGQUIT") if hasattr(signal, name)
)


def launch(target_path: str, args: list[str], cwd: str,
           argv0: str | None = None) -> LaunchResult:
    """Spawn target_path with inherited stdin/stdout/stderr and wait for it.

    argv0 defaults to target_path; the shim passes the invoked name so
    multi-call binaries see the name they were called by. The wait has no
    timeout. Raises LaunchError if the process could not be started.
    """
    argv = [argv0 or target_path, *args]
    logger.debug("launching %s as %r in %s", target_path, argv, cwd)

    start = time.monotonic()
    try:
        proc = subprocess.Popen(argv, executable=target_path, cwd=cwd)
    except OSError as e:
        raise LaunchError(f"failed to start {target_path}: {e}") from e

    with _signals_ignored():
        returncode = proc.wait()
    end = time.monotonic()

    duration_ms = max(0, int((end - start) * 1000))
    if returncode < 0:
        logger.debug("child killed by signal %d after %d ms", -returncode, duration_ms)
        return LaunchResult(exit_code=ABNORMAL_EXIT_CODE, duration_ms=duration_ms,
                            signal=-returncode)
    logger.debug("child exited %d after %d ms", returncode, duration_ms)
    return LaunchResult(exit_code=returncode, duration_ms=duration_ms)


@contextmanager
def _signals_ignored():
    previous = {}
    try:
        for sig in _FORWARDED_SIGNALS:
            previous[sig] = signal.signal(sig, signal.SIG_IGN)
    except ValueError:
        # signal.signal only works in the main thread
        pass
    try:
        yield
    finally:
        for sig, handler in previous.items():
            if handler is None:
                # installed outside Python; best approximation is the default
                handler = signal.SIG_DFL
            signal.signal(sig, handler)
