"""CPU percentage derivation from tick counters."""

import math

FLOAT_EPSILON = 0.00001
# Processes younger than this report 0% in since-start mode.
MIN_ELAPSED = 0.1


def clamp_percent(value: float) -> float:
    """Clamp to [0, 100]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 100.0)


def cpu_percent(
    total_ticks: float,
    prior_ticks: float,
    elapsed_seconds: float,
    hertz: float,
) -> float:
    """
    CPU usage over an interval as a percentage of one CPU.

    Negative tick deltas (pid reuse, counter anomalies) count as zero and
    the elapsed time is floored at a small epsilon.
    """
    if hertz <= 0:
        return 0.0
    delta = max(0.0, total_ticks - prior_ticks)
    usage = 100.0 * (delta / hertz) / max(elapsed_seconds, FLOAT_EPSILON)
    return clamp_percent(usage)


def elapsed_since_start(uptime: float, start_ticks: float, hertz: float) -> float:
    """Seconds a task has existed, given system uptime and its start tick."""
    if hertz <= 0:
        return 0.0
    return uptime - (start_ticks / hertz)


def since_start_percent(
    total_ticks: float,
    start_ticks: float,
    uptime: float,
    hertz: float,
) -> float:
    """Average CPU usage over the whole lifetime of a task."""
    elapsed = elapsed_since_start(uptime, start_ticks, hertz)
    if elapsed <= MIN_ELAPSED:
        return 0.0
    return cpu_percent(total_ticks, 0, elapsed, hertz)
