"""Clock helpers for deadlines and display times."""

import time


def monotonic() -> float:
    """Monotonic seconds used for all deadline arithmetic."""
    return time.monotonic()


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def display_end_time(seconds: float, wall_now_ms: int) -> int:
    """Wall-clock epoch milliseconds `seconds` from now, for overlay countdowns."""
    return wall_now_ms + int(seconds * 1000)
