"""Find the real binary behind the shim.

The shim is installed under the name of the command it wraps, so a plain
search path lookup of that name finds the shim again. Resolution therefore
runs twice: the first pass locates the directory the name currently resolves
to, and the second pass searches the path with that directory removed.
The search path is an explicit list and is never written back to os.environ.
"""
from __future__ import annotations

import logging
import os
import shutil

from intel_invoke.errors import RecursionGuardError, ResolutionError
from intel_invoke.models import ResolvedBinary

logger = logging.getLogger(__name__)


def resolve(invoked_path: str, current_image_path: str,
            search_path: list[str]) -> ResolvedBinary:
    """Resolve the invoked name to the real binary it shadows.

    Raises ResolutionError when the name is not on the search path and
    RecursionGuardError when the only match is the running shim.
    """
    name = os.path.basename(invoked_path)
    if not name:
        raise ResolutionError(f"cannot derive a command name from {invoked_path!r}")
    logger.debug("invoked name: %s", name)

    candidate = lookup(name, search_path)
    if candidate is None:
        raise ResolutionError(f"{name}: not found on search path")
    logger.debug("first pass: %s", candidate)

    shim_dir = os.path.dirname(candidate)
    reduced = exclude_directory(search_path, shim_dir)
    logger.debug("excluded %s, searching %s", shim_dir, reduced)

    target = lookup(name, reduced)
    if target is None:
        if _same_file(candidate, current_image_path):
            raise RecursionGuardError(
                f"{name}: only match is the shim itself ({candidate}); "
                "no real binary to delegate to"
            )
        raise ResolutionError(f"{name}: no binary found outside {shim_dir}")
    logger.debug("second pass: %s", target)

    if _same_file(target, current_image_path):
        raise RecursionGuardError(
            f"{name}: resolved to the shim itself ({target}); "
            "it is supposed to be linked ahead of the real binary"
        )
    return ResolvedBinary(real_path=target, search_dir_excluded=shim_dir)


def lookup(name: str, search_path: list[str]) -> str | None:
    """First executable match for name in search_path, as an absolute path."""
    if not search_path:
        return None
    found = shutil.which(name, path=os.pathsep.join(search_path))
    if found is None:
        return None
    return os.path.abspath(found)


def exclude_directory(search_path: list[str], directory: str) -> list[str]:
    """Return search_path without every entry that names directory."""
    excluded = _normalize(directory)
    return [d for d in search_path if _normalize(d) != excluded]


def _normalize(directory: str) -> str:
    return os.path.normcase(os.path.normpath(os.path.abspath(directory)))


def _same_file(path: str, other: str) -> bool:
    return os.path.normcase(os.path.realpath(path)) == os.path.normcase(os.path.realpath(other))
