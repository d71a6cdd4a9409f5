"""Tests for the interactive watch screen."""

import os
import signal
import sys

import pytest

from procstat.app import ProcessTable, ProcStatApp, SummaryHeader, format_uptime
from procstat.models import SortField


def test_format_uptime_hours():
    assert format_uptime(3725.9) == "01:02:05"


def test_format_uptime_days():
    assert format_uptime(2 * 86400 + 59) == "2 days, 00:00:59"


@pytest.fixture
def app(make_scanner, fake_proc):
    fake_proc.add_process(1, "init", utime=10, rss_kb=8192)
    fake_proc.add_process(2, "busy", utime=900, rss_kb=1024)
    fake_proc.add_process(3, "idle", rss_kb=4096)
    scanner = make_scanner(watch=True, interval=1, limit=2)
    return ProcStatApp(scanner.config, scanner)


async def wait_for_rows(pilot) -> None:
    for _ in range(50):
        if pilot.app.displayed_rows:
            return
        await pilot.pause(0.1)


@pytest.mark.asyncio
async def test_app_creation(app):
    assert app.title == "procstat"
    assert app.sub_title == "Linux Process Statistics"
    assert app._monitor is not None
    assert app._update_queue is not None


@pytest.mark.asyncio
async def test_app_compose(app):
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#summary", SummaryHeader) is not None
        assert pilot.app.query_one("#process-table") is not None


@pytest.mark.asyncio
async def test_app_shows_top_rows(app):
    async with app.run_test() as pilot:
        await wait_for_rows(pilot)

        assert [row.pid for row in pilot.app.displayed_rows] == [2, 1]
        assert pilot.app._monitor.is_running


@pytest.mark.asyncio
async def test_app_sort_binding(app):
    async with app.run_test() as pilot:
        await wait_for_rows(pilot)
        process_table = pilot.app.query_one(ProcessTable)

        await pilot.press("s")

        assert process_table.sort_field is SortField.MEM
        assert [row.pid for row in pilot.app.displayed_rows] == [1, 3]


@pytest.mark.asyncio
async def test_process_table_cycle_sort(app):
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)

        assert process_table.sort_field is SortField.CPU
        seen = [process_table.cycle_sort() for _ in SortField]

        assert seen == [
            SortField.MEM, SortField.PID, SortField.COMMAND, SortField.TIME, SortField.CPU,
        ]


@pytest.mark.asyncio
async def test_app_quit_binding(app):
    async with app.run_test() as pilot:
        await pilot.press("q")

        assert pilot.app._exit
        assert not pilot.app._monitor.is_running


@pytest.mark.asyncio
async def test_monitor_error_exits_app(app, fake_proc):
    (fake_proc.root / "uptime").unlink()

    async with app.run_test() as pilot:
        for _ in range(50):
            if pilot.app._exit:
                break
            await pilot.pause(0.1)

        assert pilot.app.return_code == 1


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="requires POSIX signals")
async def test_sigterm_stops_monitor_and_exits(app):
    async with app.run_test() as pilot:
        await wait_for_rows(pilot)
        assert signal.SIGTERM in pilot.app._signals

        os.kill(os.getpid(), signal.SIGTERM)
        for _ in range(50):
            if pilot.app._exit:
                break
            await pilot.pause(0.1)

        assert pilot.app._exit
        assert not pilot.app._monitor.is_running
