"""Command-line entry point for procstat."""

import argparse
import logging
import signal
import sys
import threading
from typing import TextIO

from procstat.config import (
    DEFAULT_INTERVAL,
    DEFAULT_LIMIT,
    DEFAULT_MAX_PID_SCAN,
    DEFAULT_PROC_ROOT,
    DEFAULT_THREAD_LIMIT,
    SHUTDOWN_SIGNALS,
    MonitorConfig,
    OutputFormat,
)
from procstat.errors import ProcFilesystemError
from procstat.models import MemoryUnit, ScanResult
from procstat.procfs import ProcFS
from procstat.ranking import top_n
from procstat.render import (
    CLEAR_SCREEN,
    format_header,
    format_json,
    format_summary,
    format_table,
)
from procstat.scanner import Scanner, watch

EPILOG = """\
Examples:
  procstat --limit 10 --sort mem
  procstat --watch 5 --threads
  procstat --verbose --zombie --kb
  procstat --limit 20 --sort cpu --json
  sudo procstat --limit 20 --sort cpu

Note: Some systems may require sudo/root privileges to read all process information.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procstat",
        description="Process Monitor - Linux Process Statistics",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--limit", default=DEFAULT_LIMIT, metavar="N",
                        help=f"show top N processes (default: {DEFAULT_LIMIT})")
    parser.add_argument("--sort", default="cpu", metavar="TYPE",
                        help="sort by: cpu, mem, pid, command, time (default: cpu)")
    parser.add_argument("--watch", nargs="?", const=DEFAULT_INTERVAL, default=None,
                        metavar="N", help=f"refresh every N seconds (default: {DEFAULT_INTERVAL})")
    parser.add_argument("--verbose", action="store_true", help="show debug information")
    parser.add_argument("--zombie", action="store_true", help="include zombie processes")
    parser.add_argument("--threads", action="store_true", help="show thread information")
    parser.add_argument("--thread-limit", default=DEFAULT_THREAD_LIMIT, metavar="N",
                        help=f"maximum threads per process (default: {DEFAULT_THREAD_LIMIT})")
    parser.add_argument("--max-scan", default=DEFAULT_MAX_PID_SCAN, metavar="N",
                        help=f"maximum PIDs to scan (default: {DEFAULT_MAX_PID_SCAN})")

    units = parser.add_mutually_exclusive_group()
    units.add_argument("--kb", dest="memory_unit", action="store_const", const=MemoryUnit.KB,
                       help="show memory in kilobytes")
    units.add_argument("--mb", dest="memory_unit", action="store_const", const=MemoryUnit.MB,
                       help="show memory in megabytes (default)")
    parser.set_defaults(memory_unit=MemoryUnit.MB)

    parser.add_argument("--json", action="store_true", help="output in JSON format")
    parser.add_argument("--plain", action="store_true",
                        help="redraw a plain table in watch mode instead of the interactive screen")
    parser.add_argument("--proc-root", default=str(DEFAULT_PROC_ROOT), metavar="PATH",
                        help=argparse.SUPPRESS)
    return parser


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    return MonitorConfig.from_options(
        limit=args.limit,
        sort=args.sort,
        watch=args.watch is not None,
        interval=args.watch if args.watch is not None else DEFAULT_INTERVAL,
        zombies=args.zombie,
        threads=args.threads,
        thread_limit=args.thread_limit,
        max_scan=args.max_scan,
        memory_unit=args.memory_unit,
        output=OutputFormat.JSON if args.json else OutputFormat.TABLE,
        tui=not args.plain,
        verbose=args.verbose,
        proc_root=args.proc_root,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s: %(message)s",
    )


def install_signal_handlers(cancel: threading.Event) -> None:
    """Make termination signals request a cooperative shutdown."""

    def handle_signal(signum, frame) -> None:
        cancel.set()

    for name in SHUTDOWN_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, handle_signal)


def run_once(scanner: Scanner, out: TextIO | None = None) -> int:
    out = out or sys.stdout
    config = scanner.config
    result = scanner.scan()
    rows = top_n(result.samples, config.sort_field, config.limit)

    if config.output is OutputFormat.JSON:
        print(format_json(result, rows, config.memory_unit), file=out)
        return 0

    print(format_table(rows, config.memory_unit), file=out)
    if rows:
        print(format_summary(rows, config.memory_unit), file=out)
        print(f"\nTotal entries displayed: {len(rows)}", file=out)
    return 0


def run_plain_watch(scanner: Scanner, cancel: threading.Event, out: TextIO | None = None) -> int:
    out = out or sys.stdout
    config = scanner.config
    print(f"Process Monitor - Refresh every {config.watch_interval}s (Ctrl+C to stop)", file=out)

    def emit(result: ScanResult) -> None:
        if result.iteration > 1:
            out.write(CLEAR_SCREEN)
        rows = top_n(result.samples, config.sort_field, config.limit)
        print(format_header(result, config), file=out)
        print(format_table(rows, config.memory_unit), file=out)
        out.flush()

    watch(scanner, emit, cancel)
    print("\nShutting down...", file=out)
    return 0


def run_app(config: MonitorConfig, scanner: Scanner) -> int:
    from procstat.app import ProcStatApp

    app = ProcStatApp(config, scanner)
    app.run()
    return app.return_code or 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the procstat command."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    config = config_from_args(args)

    try:
        procfs = ProcFS(config.proc_root)
        procfs.validate()
        scanner = Scanner(config, procfs=procfs)

        if config.watch and config.tui:
            return run_app(config, scanner)
        if config.watch:
            cancel = threading.Event()
            install_signal_handlers(cancel)
            return run_plain_watch(scanner, cancel)
        return run_once(scanner)
    except ProcFilesystemError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
