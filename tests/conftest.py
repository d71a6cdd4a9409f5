"""Shared fixtures: a fake /proc tree and a controllable clock."""

from pathlib import Path

import pytest

from fakeproc import FakeClock, FakeProc
from procstat.config import MonitorConfig
from procstat.procfs import ProcFS
from procstat.scanner import Scanner


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    return FakeProc(tmp_path / "proc")


@pytest.fixture
def procfs(fake_proc: FakeProc) -> ProcFS:
    return ProcFS(fake_proc.root)


@pytest.fixture
def clock(procfs: ProcFS) -> FakeClock:
    return FakeClock(procfs)


@pytest.fixture
def make_scanner(fake_proc: FakeProc, procfs: ProcFS, clock: FakeClock):
    """Factory for scanners over the fake tree that never really sleep."""
    sleeps: list[float] = []

    def factory(**options) -> Scanner:
        config = MonitorConfig.from_options(proc_root=fake_proc.root, **options)
        scanner = Scanner(config, procfs=procfs, clock=clock, sleep=sleeps.append)
        scanner.sleeps = sleeps
        return scanner

    return factory
