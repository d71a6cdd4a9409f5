"""Plain-text and JSON rendering of ranked rows."""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from procstat.config import MonitorConfig
from procstat.models import MemoryUnit, ProcessSample, ScanResult

RULE_WIDTH = 80
THREAD_PREFIX = "  └─ "
CLEAR_SCREEN = "\033[2J\033[;H"


def memory_value(sample: ProcessSample, unit: MemoryUnit) -> float:
    """Resident memory of ``sample`` in ``unit``."""
    if unit is MemoryUnit.KB:
        return float(sample.memory_kb)
    return round(sample.memory_mb, 1)


def memory_label(unit: MemoryUnit) -> str:
    return f"MEM({unit.value})"


def display_pid(sample: ProcessSample) -> str:
    return f"  {sample.pid}" if sample.is_thread else str(sample.pid)


def display_command(sample: ProcessSample) -> str:
    return THREAD_PREFIX + sample.command_line if sample.is_thread else sample.command_line


def format_table(rows: Sequence[ProcessSample], unit: MemoryUnit) -> str:
    """Render rows as a fixed-width table."""
    if not rows:
        return "No processes found or insufficient permissions."

    lines = [
        f"{'PID':<8} {'CPU%':<6} {memory_label(unit):<12} {'STATE':<6} COMMAND",
        "-" * RULE_WIDTH,
    ]
    for row in rows:
        lines.append(
            f"{display_pid(row):<8} {row.cpu_percent:<6.1f} "
            f"{memory_value(row, unit):<12.1f} {row.state:<6} {display_command(row)}"
        )
    return "\n".join(lines)


def format_summary(rows: Sequence[ProcessSample], unit: MemoryUnit) -> str:
    """Totals line printed under a one-shot table."""
    total_cpu = sum(row.cpu_percent for row in rows)
    total_memory = sum(memory_value(row, unit) for row in rows)
    return (
        "-" * RULE_WIDTH
        + "\n"
        + f"Top {len(rows)} processes: {total_cpu:.1f}% CPU, {total_memory:.1f} {unit.value}"
    )


def format_header(result: ScanResult, config: MonitorConfig, now: datetime | None = None) -> str:
    """Banner shown above each refresh in watch mode."""
    now = now or datetime.fromtimestamp(result.timestamp)
    header = (
        f"Process Monitor - Iteration #{result.iteration} - "
        f"{now:%Y-%m-%d %H:%M:%S} - Uptime: {result.uptime:.0f}s\n"
        f"Sorting by: {config.sort_field.value.upper()} | Showing top: {config.limit} | "
        f"Refresh: {config.watch_interval}s | Memory: {config.memory_unit.value}"
    )

    modes = []
    if config.include_zombies:
        modes.append("Zombies")
    if config.include_threads:
        modes.append("Threads")
    if modes:
        header += " | Modes: " + ", ".join(modes)

    return header + "\n" + "=" * RULE_WIDTH + "\n"


def sample_to_dict(sample: ProcessSample, unit: MemoryUnit) -> dict[str, Any]:
    return {
        "pid": sample.pid,
        "ppid": sample.ppid,
        "cpu": sample.cpu_percent,
        "memory": memory_value(sample, unit),
        "command": sample.command_line,
        "state": sample.state,
        "time": sample.cpu_time_seconds,
        "type": sample.kind.value,
    }


def format_json(result: ScanResult, rows: Sequence[ProcessSample], unit: MemoryUnit) -> str:
    """Structured output of a ranked row set."""
    document = {
        "timestamp": int(result.timestamp),
        "uptime": result.uptime,
        "memory_unit": unit.value,
        "total_processes": len(result.samples),
        "processes": [sample_to_dict(row, unit) for row in rows],
    }
    return json.dumps(document, indent=4)
