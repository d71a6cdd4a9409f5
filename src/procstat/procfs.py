"""Access to the /proc pseudo-filesystem and the system clock."""

import logging
import os
import time
from pathlib import Path

from procstat.errors import ProcFilesystemError
from procstat.paths import PathValidator, is_identity_segment

logger = logging.getLogger(__name__)

DEFAULT_HERTZ = 100.0
MAX_READ_BYTES = 1 << 20
UPTIME_EPSILON = 0.00001


def detect_hertz() -> float:
    """Return the kernel clock-tick rate, falling back to 100 Hz."""
    try:
        hertz = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        hertz = -1

    if hertz > 0:
        logger.debug("Detected clock tick rate from sysconf: %d", hertz)
        return float(hertz)

    logger.debug("Using default clock tick rate: %.0f", DEFAULT_HERTZ)
    return DEFAULT_HERTZ


class ProcFS:
    """
    Reader for the pseudo-filesystem.

    Every per-process path goes through a PathValidator first. A read that
    is refused, denied, raced by an exiting process or otherwise fails
    comes back as None; callers skip the entity without asking why.
    """

    def __init__(
        self,
        root: str | os.PathLike[str] = "/proc",
        validator: PathValidator | None = None,
    ) -> None:
        self._root = Path(root)
        self._validator = validator or PathValidator(root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def validator(self) -> PathValidator:
        return self._validator

    def path(self, *parts: int | str) -> Path:
        """Build a path below the root."""
        return self._root.joinpath(*(str(part) for part in parts))

    def read_bytes(self, path: str | os.PathLike[str]) -> bytes | None:
        """Read a validated record, or None if it is unavailable."""
        if not self._validator.is_allowed(path):
            return None
        try:
            with open(path, "rb") as handle:
                return handle.read(MAX_READ_BYTES)
        except OSError:
            return None

    def list_dir(self, path: str | os.PathLike[str]) -> list[str] | None:
        """List a validated directory, or None if it is unavailable."""
        if not self._validator.is_allowed(path):
            return None
        try:
            return os.listdir(path)
        except OSError:
            return None

    def list_identities(self, limit: int) -> list[int]:
        """
        Return up to ``limit`` numeric entries directly under the root.

        Raises:
            ProcFilesystemError: If the root itself cannot be listed.
        """
        pids: list[int] = []
        try:
            with os.scandir(self._root) as entries:
                for entry in entries:
                    if len(pids) >= limit:
                        logger.debug("Reached scan limit of %d entries", limit)
                        break
                    if is_identity_segment(entry.name):
                        pids.append(int(entry.name))
        except OSError as exc:
            raise ProcFilesystemError(
                f"Cannot access {self._root} directory. Check permissions."
            ) from exc
        return pids

    def read_uptime(self) -> float:
        """
        Read seconds since boot from ``<root>/uptime``.

        Raises:
            ProcFilesystemError: If the file is unreadable or malformed.
        """
        uptime_path = self._root / "uptime"
        try:
            content = uptime_path.read_text(encoding="ascii")
        except (OSError, UnicodeDecodeError) as exc:
            raise ProcFilesystemError(
                f"Cannot read {uptime_path}. Check permissions or run with "
                "appropriate privileges"
            ) from exc

        parts = content.split()
        if len(parts) < 2:
            raise ProcFilesystemError(f"Invalid format in {uptime_path}")

        try:
            uptime = float(parts[0])
        except ValueError as exc:
            raise ProcFilesystemError(f"Invalid uptime value in {uptime_path}") from exc

        if not uptime > UPTIME_EPSILON:
            raise ProcFilesystemError(f"Invalid uptime value in {uptime_path}")
        return uptime

    def validate(self) -> None:
        """
        Check that the root looks like a mounted proc filesystem.

        Raises:
            ProcFilesystemError: If the root is missing or unrecognizable.
        """
        if not self._root.is_dir():
            raise ProcFilesystemError(f"{self._root} filesystem not available or not mounted")
        if not (self._root / "self").exists() and not (self._root / "version").exists():
            raise ProcFilesystemError(f"{self._root} does not appear to be a valid proc filesystem")
        if not os.access(self._root / "uptime", os.R_OK):
            raise ProcFilesystemError(
                f"{self._root / 'uptime'} is not readable. Check permissions or run with sudo"
            )


class SystemClock:
    """Wall clock plus the system-wide facts read from /proc."""

    def __init__(self, procfs: ProcFS, hertz: float | None = None) -> None:
        self._procfs = procfs
        self._hertz = hertz if hertz and hertz > 0 else detect_hertz()

    @property
    def hertz(self) -> float:
        """Clock ticks per second, fixed for the lifetime of the run."""
        return self._hertz

    def now(self) -> float:
        return time.time()

    def uptime(self) -> float:
        """Seconds since boot, re-read on every call."""
        return self._procfs.read_uptime()
