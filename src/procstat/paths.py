"""Validation of /proc paths before they are opened."""

import os
import re
from pathlib import Path

# Kernel upper bound for pid_max on 64-bit systems.
PID_MAX_LIMIT = 4194304

RECORD_FILES = frozenset({"stat", "status", "cmdline"})
TASK_DIR = "task"

_IDENTITY_RE = re.compile(r"[1-9][0-9]*")


def is_identity(value: int) -> bool:
    """Check whether ``value`` is a usable process or thread id."""
    return isinstance(value, int) and 0 < value <= PID_MAX_LIMIT


def is_identity_segment(segment: str) -> bool:
    """Check whether a path segment names a process or thread id."""
    if _IDENTITY_RE.fullmatch(segment) is None:
        return False
    return int(segment) <= PID_MAX_LIMIT


class PathValidator:
    """
    Gatekeeper for paths under the pseudo-filesystem root.

    Any process can influence names that end up in /proc, and symbolic
    links inside it can point anywhere, so every path is resolved first and
    then matched against the closed set of shapes the reader needs:

        <root>/<pid>
        <root>/<pid>/stat | status | cmdline
        <root>/<pid>/task
        <root>/<pid>/task/<tid>
        <root>/<pid>/task/<tid>/stat
    """

    def __init__(self, root: str | os.PathLike[str] = "/proc") -> None:
        self._root = Path(os.path.realpath(root))

    @property
    def root(self) -> Path:
        """Resolved pseudo-filesystem root."""
        return self._root

    def is_allowed(self, path: str | os.PathLike[str]) -> bool:
        """Return True only for well-formed, in-bounds record paths."""
        try:
            resolved = Path(os.path.realpath(path))
            parts = resolved.relative_to(self._root).parts
        except (OSError, ValueError):
            return False

        if not parts or not is_identity_segment(parts[0]):
            return False

        try:
            if len(parts) == 1:
                return resolved.is_dir()
            if len(parts) == 2:
                if parts[1] == TASK_DIR:
                    return resolved.is_dir()
                return parts[1] in RECORD_FILES
            if parts[1] != TASK_DIR or not is_identity_segment(parts[2]):
                return False
            if len(parts) == 3:
                return resolved.is_dir()
            if len(parts) == 4:
                return parts[3] == "stat"
        except OSError:
            return False
        return False
