"""Sampling pass over every process (and optionally thread) in /proc."""

import logging
import threading
import time
from collections.abc import Callable

from procstat.config import MonitorConfig
from procstat.history import HistoryStore, SampleCache
from procstat.models import (
    CpuMode,
    Identity,
    ProcessRecord,
    ProcessSample,
    RowKind,
    ScanResult,
    ScanStats,
)
from procstat.procfs import ProcFS, SystemClock
from procstat.rates import cpu_percent, since_start_percent
from procstat.reader import SampleReader, sanitize, truncate

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
BATCH_DELAY = 0.001  # seconds between batches
FIRST_INTERVAL = 1.0


class Scanner:
    """
    Orchestrates one sampling pass.

    Owns the history and the sample cache for the lifetime of a run, so
    consecutive calls to scan() produce delta-mode rates. Entities that
    vanish or cannot be read while the pass is running are counted and
    skipped; only a failure of the system-wide sources is raised.
    """

    def __init__(
        self,
        config: MonitorConfig,
        procfs: ProcFS | None = None,
        clock: SystemClock | None = None,
        history: HistoryStore | None = None,
        cache: SampleCache | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._procfs = procfs if procfs is not None else ProcFS(config.proc_root)
        self._reader = SampleReader(self._procfs)
        self._clock = clock if clock is not None else SystemClock(self._procfs)
        self._history = history if history is not None else HistoryStore(config.history_capacity)
        self._cache = cache if cache is not None else SampleCache()
        self._sleep = sleep
        self._last_scan_time: float | None = None
        self._iteration = 0

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def history(self) -> HistoryStore:
        return self._history

    @property
    def cache(self) -> SampleCache:
        return self._cache

    @property
    def iteration(self) -> int:
        return self._iteration

    def sample_all(self) -> list[ProcessSample]:
        """Run one pass and return its rows, processes first."""
        return self.scan().samples

    def scan(self) -> ScanResult:
        """
        Run one sampling pass.

        Raises:
            ProcFilesystemError: If uptime or the root listing is unavailable.
        """
        started = time.perf_counter()
        uptime = self._clock.uptime()
        now = self._clock.now()

        if self._last_scan_time is None:
            interval = FIRST_INTERVAL
        else:
            interval = now - self._last_scan_time
        self._last_scan_time = now
        self._iteration += 1

        self._history.evict_stale(now, self._config.history_max_age)
        self._history.evict_over_capacity(self._config.history_capacity)
        self._cache.prune(now)

        stats = ScanStats()
        pids = self._procfs.list_identities(self._config.max_scan)
        samples = self._read_processes(pids, uptime, now, interval, stats)

        if self._config.include_threads:
            threads: list[ProcessSample] = []
            for process in samples:
                threads.extend(self._read_threads(process, uptime, now, interval, stats))
            stats.threads = len(threads)
            samples.extend(threads)

        stats.elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug(
            "%d scanned, %d skipped, %d threads, %d cached, took %.2fms",
            stats.scanned,
            stats.skipped,
            stats.threads,
            stats.cache_hits,
            stats.elapsed_ms,
        )
        return ScanResult(
            samples=samples,
            uptime=uptime,
            timestamp=now,
            iteration=self._iteration,
            stats=stats,
        )

    def _read_processes(
        self,
        pids: list[int],
        uptime: float,
        now: float,
        interval: float,
        stats: ScanStats,
    ) -> list[ProcessSample]:
        """Read processes in batches, pausing briefly between batches."""
        samples: list[ProcessSample] = []
        for start in range(0, len(pids), BATCH_SIZE):
            if start:
                self._sleep(BATCH_DELAY)
            for pid in pids[start : start + BATCH_SIZE]:
                stats.scanned += 1
                sample = self._read_process(pid, uptime, now, interval, stats)
                if sample is None:
                    stats.skipped += 1
                else:
                    samples.append(sample)
        return samples

    def _read_process(
        self,
        pid: int,
        uptime: float,
        now: float,
        interval: float,
        stats: ScanStats,
    ) -> ProcessSample | None:
        identity = Identity(pid)
        cached = self._cache.get(identity, now)
        if cached is not None:
            stats.cache_hits += 1
            return cached

        record = self._reader.read_process_record(pid, self._config.skip_states)
        if record is None:
            return None

        ticks = record.total_ticks
        percent = self._cpu_percent(identity, record, ticks, uptime, now, interval)
        sample = ProcessSample(
            pid=pid,
            ppid=record.ppid,
            state=record.state,
            command_name=truncate(sanitize(record.name)),
            command_line=self._reader.read_command_line(pid, record.name),
            cpu_percent=round(percent, 1),
            memory_kb=self._reader.read_memory_kb(pid),
            cpu_time_seconds=round(ticks / self._clock.hertz, 1),
            kind=RowKind.PROCESS,
        )
        self._cache.put(identity, sample, now)
        return sample

    def _read_threads(
        self,
        process: ProcessSample,
        uptime: float,
        now: float,
        interval: float,
        stats: ScanStats,
    ) -> list[ProcessSample]:
        """Read the threads of ``process`` other than its main thread."""
        threads: list[ProcessSample] = []
        limit = self._config.thread_limit

        for tid in self._reader.list_threads(process.pid):
            if len(threads) >= limit:
                logger.debug("Reached thread limit %d for PID %d", limit, process.pid)
                break
            if tid == process.pid:
                continue

            identity = Identity(process.pid, tid)
            cached = self._cache.get(identity, now)
            if cached is not None:
                stats.cache_hits += 1
                threads.append(cached)
                continue

            record = self._reader.read_thread_record(process.pid, tid, self._config.skip_states)
            if record is None:
                stats.skipped += 1
                continue

            ticks = record.own_ticks
            percent = self._cpu_percent(identity, record, ticks, uptime, now, interval)
            name = truncate(sanitize(record.name))
            thread = ProcessSample(
                pid=tid,
                ppid=process.pid,
                state=record.state,
                command_name=name,
                command_line=name,
                cpu_percent=round(percent, 1),
                # Threads share the address space of their process.
                memory_kb=process.memory_kb,
                cpu_time_seconds=round(ticks / self._clock.hertz, 1),
                kind=RowKind.THREAD,
            )
            self._cache.put(identity, thread, now)
            threads.append(thread)

        return threads

    def _cpu_percent(
        self,
        identity: Identity,
        record: ProcessRecord,
        ticks: int,
        uptime: float,
        now: float,
        interval: float,
    ) -> float:
        """Rate for one entity in the configured mode; records its ticks."""
        hertz = self._clock.hertz
        if self._config.cpu_mode is CpuMode.SINCE_START:
            percent = since_start_percent(ticks, record.start_ticks, uptime, hertz)
        else:
            prior = self._history.get(identity)
            if prior is None:
                percent = cpu_percent(ticks, 0, interval, hertz)
            else:
                percent = cpu_percent(ticks, prior.total_ticks, now - prior.timestamp, hertz)
        self._history.put(identity, ticks, now)
        return percent


def watch(
    scanner: Scanner,
    emit: Callable[[ScanResult], None],
    cancel: threading.Event,
    interval: float | None = None,
) -> int:
    """
    Scan, emit and sleep until ``cancel`` is set.

    The event is checked before every pass and interrupts the sleep; a pass
    already running is allowed to finish. Returns the number of passes.
    """
    if interval is None:
        interval = scanner.config.watch_interval

    passes = 0
    while not cancel.is_set():
        emit(scanner.scan())
        passes += 1
        cancel.wait(timeout=interval)
    return passes
