"""Human-readable numbers and durations for warnings and insights."""

from __future__ import annotations


def format_number(num: float) -> str:
    """
    Compact row counts: 950 -> "950", 12_345 -> "12.3K", 2_500_000 -> "2.5M".
    """
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return f"{num:.0f}"


def format_time(ms: float) -> str:
    """Durations in milliseconds: 1500 -> "1.50s", 12.5 -> "12.50ms", 0.25 -> "250μs"."""
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    if ms >= 1:
        return f"{ms:.2f}ms"
    return f"{ms * 1000:.0f}μs"
