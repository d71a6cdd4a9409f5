"""procstat - interactive watch screen built on Textual."""

import asyncio
import signal
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Static

from procstat.config import SHUTDOWN_SIGNALS, MonitorConfig
from procstat.models import MemoryUnit, ProcessSample, ScanResult, SortField
from procstat.monitor import ProcessMonitor
from procstat.ranking import top_n
from procstat.render import display_command, display_pid, memory_label, memory_value
from procstat.scanner import Scanner


def format_uptime(uptime: float) -> str:
    """Format seconds since boot like top does."""
    days = int(uptime // 86400)
    hours = int((uptime % 86400) // 3600)
    minutes = int((uptime % 3600) // 60)
    seconds = int(uptime % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class SummaryHeader(Static):
    """Header line with pass counters and the active options."""

    DEFAULT_CSS = """
    SummaryHeader {
        height: auto;
        padding: 0 1;
        background: $surface;
    }
    """

    def show(self, result: ScanResult, sort_field: SortField, config: MonitorConfig) -> None:
        stats = result.stats
        modes = []
        if config.include_zombies:
            modes.append("Zombies")
        if config.include_threads:
            modes.append("Threads")
        self.update(
            f"Iteration #{result.iteration}  Uptime: {format_uptime(result.uptime)}\n"
            f"Sorting by: {sort_field.value.upper()} | Showing top: {config.limit} | "
            f"Refresh: {config.watch_interval}s | Memory: {config.memory_unit.value}"
            + (f" | Modes: {', '.join(modes)}" if modes else "")
            + f"\n{stats.scanned} scanned, {stats.skipped} skipped, "
            f"{stats.threads} threads in {stats.elapsed_ms:.0f}ms"
        )


class ProcessTable(Container):
    """Container for the ranked process table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(
        self,
        sort_field: SortField = SortField.CPU,
        memory_unit: MemoryUnit = MemoryUnit.MB,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._sort_field = sort_field
        self._memory_unit = memory_unit

    @property
    def sort_field(self) -> SortField:
        return self._sort_field

    def cycle_sort(self) -> SortField:
        """Switch to the next sort field and return it."""
        fields = list(SortField)
        self._sort_field = fields[(fields.index(self._sort_field) + 1) % len(fields)]
        return self._sort_field

    def compose(self) -> ComposeResult:
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=9)
        table.add_column("PPID", key="ppid", width=8)
        table.add_column("S", key="state", width=3)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column(memory_label(self._memory_unit), key="mem", width=12)
        table.add_column("TIME", key="time", width=10)
        table.add_column("COMMAND", key="command")

    def show_rows(self, samples: list[ProcessSample], limit: int) -> list[ProcessSample]:
        """Rank ``samples`` and redraw the table with the top ``limit`` rows."""
        rows = top_n(samples, self._sort_field, limit)
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for row in rows:
            table.add_row(
                display_pid(row),
                str(row.ppid),
                row.state,
                f"{row.cpu_percent:5.1f}",
                f"{memory_value(row, self._memory_unit):.1f}",
                f"{row.cpu_time_seconds:.1f}",
                display_command(row),
                key=f"{row.kind.value}:{row.pid}",
            )
        return rows


class ProcStatApp(App):
    """Continuously refreshed top-N process view."""

    TITLE = "procstat"
    SUB_TITLE = "Linux Process Statistics"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
        height: auto;
        min-height: 3;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "sort", "Sort"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, config: MonitorConfig, scanner: Scanner | None = None) -> None:
        super().__init__()
        self._config = config
        self._update_queue: Queue[ScanResult] = Queue()
        self._monitor = ProcessMonitor(
            self._update_queue, scanner if scanner is not None else Scanner(config)
        )
        self._last_result: ScanResult | None = None
        self._displayed: list[ProcessSample] = []
        self._signals: list[int] = []

    @property
    def displayed_rows(self) -> list[ProcessSample]:
        return self._displayed

    def compose(self) -> ComposeResult:
        yield SummaryHeader("Sampling /proc...", id="summary")
        yield ProcessTable(self._config.sort_field, self._config.memory_unit)
        yield Footer()

    def on_mount(self) -> None:
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)
        self._install_signal_handlers()

    def on_unmount(self) -> None:
        self._remove_signal_handlers()
        self._monitor.stop()

    def _install_signal_handlers(self) -> None:
        """Route termination signals to a clean shutdown of the monitor and the app."""
        loop = asyncio.get_running_loop()
        for name in SHUTDOWN_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                loop.add_signal_handler(signum, self.action_quit)
            except (NotImplementedError, RuntimeError, ValueError):
                continue  # no loop signal support on this platform
            self._signals.append(signum)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in self._signals:
            loop.remove_signal_handler(signum)
        self._signals.clear()

    def _check_for_updates(self) -> None:
        """Show the most recent result and surface a fatal monitor error."""
        result = None
        while True:
            try:
                result = self._update_queue.get_nowait()
            except Empty:
                break

        if result is not None:
            self._last_result = result
            self._refresh_view()
        elif self._monitor.error is not None:
            self._monitor.stop()
            self.exit(return_code=1, message=f"Error: {self._monitor.error}")

    def _refresh_view(self) -> None:
        if self._last_result is None:
            return
        try:
            table = self.query_one(ProcessTable)
            header = self.query_one("#summary", SummaryHeader)
        except NoMatches:
            return  # Not mounted yet
        self._displayed = table.show_rows(self._last_result.samples, self._config.limit)
        header.show(self._last_result, table.sort_field, self._config)

    def action_sort(self) -> None:
        """Cycle through sort fields and re-rank the current rows."""
        sort_field = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {sort_field.value.upper()}")
        self._refresh_view()

    def action_quit(self) -> None:
        self._monitor.stop()
        self.exit()
