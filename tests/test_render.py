"""Tests for plain-text and JSON rendering."""

import json
from datetime import datetime

from procstat.config import MonitorConfig
from procstat.models import MemoryUnit, ProcessSample, RowKind, ScanResult
from procstat.render import (
    format_header,
    format_json,
    format_summary,
    format_table,
    memory_value,
)


def sample(pid=10, cpu=12.5, memory_kb=3072, kind=RowKind.PROCESS, command="/usr/bin/app --serve"):
    return ProcessSample(
        pid=pid, ppid=1, state="R", command_name="app", command_line=command,
        cpu_percent=cpu, memory_kb=memory_kb, cpu_time_seconds=42.0, kind=kind,
    )


def test_memory_value_units():
    row = sample(memory_kb=1536)

    assert memory_value(row, MemoryUnit.MB) == 1.5
    assert memory_value(row, MemoryUnit.KB) == 1536.0


def test_format_table():
    text = format_table([sample()], MemoryUnit.MB)
    header, rule, line = text.splitlines()

    assert header.split() == ["PID", "CPU%", "MEM(MB)", "STATE", "COMMAND"]
    assert set(rule) == {"-"}
    assert line.split()[:4] == ["10", "12.5", "3.0", "R"]
    assert line.endswith("/usr/bin/app --serve")


def test_format_table_kilobytes():
    text = format_table([sample()], MemoryUnit.KB)

    assert "MEM(KB)" in text
    assert "3072.0" in text


def test_format_table_thread_rows_are_indented():
    rows = [sample(pid=11, kind=RowKind.THREAD, command="worker")]
    line = format_table(rows, MemoryUnit.MB).splitlines()[2]

    assert line.startswith("  11")
    assert line.endswith("└─ worker")


def test_format_table_empty():
    assert "No processes found" in format_table([], MemoryUnit.MB)


def test_format_summary():
    rows = [sample(cpu=10.0, memory_kb=1024), sample(pid=11, cpu=5.5, memory_kb=2048)]
    text = format_summary(rows, MemoryUnit.MB)

    assert text.splitlines()[-1] == "Top 2 processes: 15.5% CPU, 3.0 MB"


def test_format_header():
    config = MonitorConfig.from_options(sort="mem", limit=5, interval=3, threads=True, zombies=True)
    result = ScanResult(samples=[], uptime=3600.4, timestamp=0.0, iteration=7)

    text = format_header(result, config, now=datetime(2024, 5, 1, 12, 30, 0))

    assert "Iteration #7 - 2024-05-01 12:30:00 - Uptime: 3600s" in text
    assert "Sorting by: MEM | Showing top: 5 | Refresh: 3s | Memory: MB" in text
    assert "Modes: Zombies, Threads" in text


def test_format_header_without_modes():
    result = ScanResult(samples=[], uptime=1.0, timestamp=0.0)

    assert "Modes" not in format_header(result, MonitorConfig.from_options())


def test_format_json():
    rows = [sample(), sample(pid=11, kind=RowKind.THREAD)]
    result = ScanResult(samples=rows + [sample(pid=12)], uptime=99.5, timestamp=1700000000.7)

    document = json.loads(format_json(result, rows, MemoryUnit.KB))

    assert document["timestamp"] == 1700000000
    assert document["uptime"] == 99.5
    assert document["memory_unit"] == "KB"
    assert document["total_processes"] == 3
    assert document["processes"][0] == {
        "pid": 10,
        "ppid": 1,
        "cpu": 12.5,
        "memory": 3072.0,
        "command": "/usr/bin/app --serve",
        "state": "R",
        "time": 42.0,
        "type": "process",
    }
    assert document["processes"][1]["type"] == "thread"
