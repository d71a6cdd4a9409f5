"""Run configuration for procstat."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from procstat.history import MAX_HISTORY_SIZE, MAX_STATS_AGE
from procstat.models import CpuMode, MemoryUnit, SortField

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_INTERVAL = 2
DEFAULT_THREAD_LIMIT = 1000
DEFAULT_MAX_PID_SCAN = 131072
DEFAULT_PROC_ROOT = Path("/proc")

LIMIT_RANGE = (1, 1000)
INTERVAL_RANGE = (1, 3600)
THREAD_LIMIT_RANGE = (1, 10000)
MAX_SCAN_RANGE = (100, 1000000)

# History survives this many refresh intervals without being re-observed.
STALE_INTERVALS = 3
ZOMBIE_STATE = "Z"
# Signals that request a cooperative shutdown.
SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


class OutputFormat(Enum):
    """How a result set is presented."""

    TABLE = "table"
    JSON = "json"


def _bounded(name: str, value: int | str, default: int, bounds: tuple[int, int]) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s value '%s'. Using %d.", name.lower(), value, default)
        return default

    low, high = bounds
    clamped = min(max(number, low), high)
    if clamped != number:
        logger.warning("%s must be between %d and %d. Using %d.", name, low, high, clamped)
    return clamped


def _choice(name: str, value, enum_type: type[Enum], default: Enum):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        logger.warning("Invalid %s option '%s'. Using '%s'.", name, value, default.value)
        return default


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Validated options for one run."""

    limit: int = DEFAULT_LIMIT
    sort_field: SortField = SortField.CPU
    watch: bool = False
    watch_interval: int = DEFAULT_INTERVAL
    include_zombies: bool = False
    include_threads: bool = False
    thread_limit: int = DEFAULT_THREAD_LIMIT
    max_scan: int = DEFAULT_MAX_PID_SCAN
    memory_unit: MemoryUnit = MemoryUnit.MB
    output: OutputFormat = OutputFormat.TABLE
    tui: bool = True
    verbose: bool = False
    proc_root: Path = field(default=DEFAULT_PROC_ROOT)

    @classmethod
    def from_options(
        cls,
        *,
        limit: int | str = DEFAULT_LIMIT,
        sort: str | SortField = SortField.CPU,
        watch: bool = False,
        interval: int | str = DEFAULT_INTERVAL,
        zombies: bool = False,
        threads: bool = False,
        thread_limit: int | str = DEFAULT_THREAD_LIMIT,
        max_scan: int | str = DEFAULT_MAX_PID_SCAN,
        memory_unit: str | MemoryUnit = MemoryUnit.MB,
        output: str | OutputFormat = OutputFormat.TABLE,
        tui: bool = True,
        verbose: bool = False,
        proc_root: str | Path = DEFAULT_PROC_ROOT,
    ) -> "MonitorConfig":
        """
        Build a config from user-supplied values.

        Out-of-range numbers are clamped to the nearest bound; non-numeric
        values and unknown choices fall back to their default. Each correction
        is logged as a warning; none of them is fatal.
        """
        output_format = _choice("output", output, OutputFormat, OutputFormat.TABLE)
        if watch and output_format is OutputFormat.JSON:
            logger.warning("JSON output is produced once; ignoring watch mode.")
            watch = False

        return cls(
            limit=_bounded("Limit", limit, DEFAULT_LIMIT, LIMIT_RANGE),
            sort_field=_choice("sort", sort, SortField, SortField.CPU),
            watch=bool(watch),
            watch_interval=_bounded("Interval", interval, DEFAULT_INTERVAL, INTERVAL_RANGE),
            include_zombies=bool(zombies),
            include_threads=bool(threads),
            thread_limit=_bounded(
                "Thread limit", thread_limit, DEFAULT_THREAD_LIMIT, THREAD_LIMIT_RANGE
            ),
            max_scan=_bounded("Max scan", max_scan, DEFAULT_MAX_PID_SCAN, MAX_SCAN_RANGE),
            memory_unit=_choice("memory unit", memory_unit, MemoryUnit, MemoryUnit.MB),
            output=output_format,
            tui=bool(tui),
            verbose=bool(verbose),
            proc_root=Path(proc_root),
        )

    @property
    def cpu_mode(self) -> CpuMode:
        """Watch mode reports current rates, one-shot runs lifetime averages."""
        return CpuMode.DELTA if self.watch else CpuMode.SINCE_START

    @property
    def skip_states(self) -> frozenset[str]:
        return frozenset() if self.include_zombies else frozenset({ZOMBIE_STATE})

    @property
    def history_max_age(self) -> float:
        return max(MAX_STATS_AGE, float(STALE_INTERVALS * self.watch_interval))

    @property
    def history_capacity(self) -> int:
        return min(self.max_scan * 2, MAX_HISTORY_SIZE)
