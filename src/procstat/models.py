"""Data models for procstat."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


class RowKind(Enum):
    """Kind of entity a sample row describes."""

    PROCESS = "process"
    THREAD = "thread"


class SortField(Enum):
    """Sort fields for the ranked process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    COMMAND = "command"
    TIME = "time"


class CpuMode(Enum):
    """How CPU percentages are derived from tick counters."""

    SINCE_START = "since_start"  # lifetime average
    DELTA = "delta"  # since the previous sample


class MemoryUnit(Enum):
    """Unit the renderers use for resident memory."""

    KB = "KB"
    MB = "MB"


class Identity(NamedTuple):
    """History key: a process is (pid, None), a thread is (pid, tid)."""

    pid: int
    tid: int | None = None


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Raw counters parsed from one stat record."""

    pid: int
    name: str
    state: str
    ppid: int
    utime: int
    stime: int
    cutime: int
    cstime: int
    start_ticks: int

    @property
    def total_ticks(self) -> int:
        """CPU ticks including waited-for children."""
        return self.utime + self.stime + self.cutime + self.cstime

    @property
    def own_ticks(self) -> int:
        """CPU ticks spent by this task alone."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Immutable observation of a process or thread."""

    pid: int
    ppid: int
    state: str  # 'R', 'S', 'Z', 'D', etc.
    command_name: str
    command_line: str
    cpu_percent: float  # 0.0 - 100.0
    memory_kb: int  # Resident set size
    cpu_time_seconds: float
    kind: RowKind = RowKind.PROCESS

    @property
    def memory_mb(self) -> float:
        return self.memory_kb / 1024.0

    @property
    def is_thread(self) -> bool:
        return self.kind is RowKind.THREAD


@dataclass(slots=True, frozen=True)
class HistoryEntry:
    """Last cumulative counters seen for one identity."""

    identity: Identity
    total_ticks: int
    timestamp: float


@dataclass(slots=True)
class ScanStats:
    """Counters for one sampling pass."""

    scanned: int = 0
    skipped: int = 0
    threads: int = 0
    cache_hits: int = 0
    elapsed_ms: float = 0.0


@dataclass(slots=True)
class ScanResult:
    """Everything one sampling pass produced."""

    samples: list[ProcessSample]
    uptime: float
    timestamp: float
    iteration: int = 1
    stats: ScanStats = field(default_factory=ScanStats)
