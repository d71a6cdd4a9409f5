"""Top-N selection of sampled rows."""

import heapq
from collections.abc import Callable, Iterable
from functools import total_ordering
from typing import Any

from procstat.models import ProcessSample, SortField


@total_ordering
class _Descending:
    """Wraps a value so that ascending order of wrappers is descending order of values."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Descending):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: "_Descending") -> bool:
        return other.value < self.value


_FIELD_VALUES: dict[SortField, Callable[[ProcessSample], Any]] = {
    SortField.CPU: lambda row: row.cpu_percent,
    SortField.MEM: lambda row: row.memory_kb,
    SortField.PID: lambda row: row.pid,
    SortField.COMMAND: lambda row: row.command_line,
    SortField.TIME: lambda row: row.cpu_time_seconds,
}


def sort_key(sort_field: SortField) -> Callable[[ProcessSample], tuple[Any, int]]:
    """Key giving field-descending, pid-ascending order."""
    value_of = _FIELD_VALUES[sort_field]

    def key(row: ProcessSample) -> tuple[Any, int]:
        return (_Descending(value_of(row)), row.pid)

    return key


def rank(rows: Iterable[ProcessSample], sort_field: SortField) -> list[ProcessSample]:
    """Full ordering of ``rows`` by ``sort_field``."""
    return sorted(rows, key=sort_key(sort_field))


def top_n(rows: Iterable[ProcessSample], sort_field: SortField, n: int) -> list[ProcessSample]:
    """
    Select the ``n`` highest rows by ``sort_field``.

    Ties are broken by ascending pid. When ``n`` is smaller than the number
    of rows a bounded heap is used instead of a full sort; both give the
    same result as ``rank(rows, sort_field)[:n]``.
    """
    if n <= 0:
        return []
    rows = list(rows)
    key = sort_key(sort_field)
    if n >= len(rows):
        return sorted(rows, key=key)
    return heapq.nsmallest(n, rows, key=key)
