"""Parsers for per-process and per-thread records."""

import re
from collections.abc import Container

from procstat.models import ProcessRecord
from procstat.paths import is_identity, is_identity_segment
from procstat.procfs import ProcFS

# Tokens after the name up to and including starttime (stat field 22).
MIN_STAT_FIELDS = 20
MAX_COMMAND_LENGTH = 80
ELLIPSIS = "..."
PLACEHOLDER = "?"

_UNSAFE_RE = re.compile(r"[^\x20-\x7e]")
_VMRSS_RE = re.compile(rb"^VmRSS:\s+(\d+)\s*kB", re.MULTILINE)

# Positions after the closing parenthesis of the name.
_PPID = 1
_UTIME, _STIME, _CUTIME, _CSTIME = 11, 12, 13, 14
_STARTTIME = 19


def sanitize(text: str) -> str:
    """Replace anything outside printable ASCII and strip the result."""
    return _UNSAFE_RE.sub(PLACEHOLDER, text).strip()


def truncate(text: str, max_length: int = MAX_COMMAND_LENGTH) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut."""
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(ELLIPSIS))] + ELLIPSIS


def parse_stat(raw: bytes, pid: int, skip_states: Container[str] = ()) -> ProcessRecord | None:
    """
    Parse a stat record.

    The name sits between the first "(" and the *last* ")" because it may
    itself contain spaces and parentheses. A record whose state is in
    ``skip_states`` is dropped before the remaining fields are tokenized.

    Returns:
        The parsed record, or None if the content is malformed or too short.
    """
    open_paren = raw.find(b"(")
    close_paren = raw.rfind(b")")
    if open_paren == -1 or close_paren < open_paren:
        return None

    name = raw[open_paren + 1 : close_paren].decode("utf-8", "replace")
    rest = raw[close_paren + 1 :]

    head = rest.split(None, 1)
    if not head:
        return None
    state = head[0].decode("ascii", "replace")
    if state in skip_states:
        return None

    fields = rest.split()
    if len(fields) < MIN_STAT_FIELDS:
        return None

    try:
        return ProcessRecord(
            pid=pid,
            name=name,
            state=sanitize(state)[:1] or PLACEHOLDER,
            ppid=int(fields[_PPID]),
            utime=int(fields[_UTIME]),
            stime=int(fields[_STIME]),
            cutime=int(fields[_CUTIME]),
            cstime=int(fields[_CSTIME]),
            start_ticks=int(fields[_STARTTIME]),
        )
    except ValueError:
        return None


def parse_vmrss_kb(raw: bytes) -> int:
    """Extract VmRSS in kilobytes from a status record, 0 if absent."""
    match = _VMRSS_RE.search(raw)
    if match is None:
        return 0
    return int(match.group(1))


def format_command_line(raw: bytes | None, fallback_name: str) -> str:
    """Turn a NUL-separated argument vector into a display string."""
    command = ""
    if raw:
        command = raw.replace(b"\0", b" ").decode("utf-8", "replace").strip()
    if not command:
        # Kernel threads and zombies have an empty cmdline.
        return truncate(f"[{sanitize(fallback_name)}]")
    return truncate(sanitize(command))


class SampleReader:
    """Reads and parses the records of one process or thread."""

    def __init__(self, procfs: ProcFS) -> None:
        self._procfs = procfs

    def read_process_record(
        self, pid: int, skip_states: Container[str] = ()
    ) -> ProcessRecord | None:
        """Parse ``<root>/<pid>/stat``; None if unavailable or malformed."""
        if not is_identity(pid):
            return None
        raw = self._procfs.read_bytes(self._procfs.path(pid, "stat"))
        if raw is None:
            return None
        return parse_stat(raw, pid, skip_states)

    def read_thread_record(
        self, pid: int, tid: int, skip_states: Container[str] = ()
    ) -> ProcessRecord | None:
        """Parse ``<root>/<pid>/task/<tid>/stat``; the record carries the tid."""
        if not is_identity(pid) or not is_identity(tid):
            return None
        raw = self._procfs.read_bytes(self._procfs.path(pid, "task", tid, "stat"))
        if raw is None:
            return None
        return parse_stat(raw, tid, skip_states)

    def read_memory_kb(self, pid: int) -> int:
        """Resident set size in kilobytes, 0 if unreadable."""
        if not is_identity(pid):
            return 0
        raw = self._procfs.read_bytes(self._procfs.path(pid, "status"))
        if raw is None:
            return 0
        return parse_vmrss_kb(raw)

    def read_memory_mb(self, pid: int) -> float:
        """Resident set size in megabytes, 0.0 if unreadable."""
        return self.read_memory_kb(pid) / 1024.0

    def read_command_line(self, pid: int, fallback_name: str) -> str:
        """Sanitized command line, or ``[fallback_name]`` when empty."""
        raw = None
        if is_identity(pid):
            raw = self._procfs.read_bytes(self._procfs.path(pid, "cmdline"))
        return format_command_line(raw, fallback_name)

    def list_threads(self, pid: int) -> list[int]:
        """Thread ids under ``<root>/<pid>/task``, empty if unavailable."""
        if not is_identity(pid):
            return []
        names = self._procfs.list_dir(self._procfs.path(pid, "task"))
        if names is None:
            return []
        return [int(name) for name in names if is_identity_segment(name)]
