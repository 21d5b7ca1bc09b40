"""
smartpick/models/pattern_filter.py
Flag tickets shaped like the combinations people play most often.

Every check works on a sorted copy of the mains and ignores the special.
"""
from __future__ import annotations

from typing import Sequence

from smartpick.models.types import FrequencyStats

BIRTHDAY_MAX = 31
BIRTHDAY_COUNT = 4
RUN_LENGTH = 3
CLUSTER_DIVISOR = 7   # span <= main_max // 7 counts as tight


def has_consecutive_run(mains: Sequence[int], run_len: int = RUN_LENGTH) -> bool:
    a = sorted(mains)
    if run_len <= 1:
        return len(a) > 0
    run = 1
    for prev, cur in zip(a, a[1:]):
        run = run + 1 if cur == prev + 1 else 1
        if run >= run_len:
            return True
    return False


def is_birthday_heavy(mains: Sequence[int]) -> bool:
    return sum(1 for n in mains if n <= BIRTHDAY_MAX) >= BIRTHDAY_COUNT


def is_arithmetic_sequence(mains: Sequence[int]) -> bool:
    a = sorted(mains)
    if len(a) < 3:
        return False
    step = a[1] - a[0]
    return all(cur - prev == step for prev, cur in zip(a, a[1:]))


def is_tightly_clustered(mains: Sequence[int], main_max: int) -> bool:
    if len(mains) < 2:
        return False
    return max(mains) - min(mains) <= main_max // CLUSTER_DIVISOR


def looks_too_common(mains: Sequence[int], main_max: int) -> bool:
    """True if any commonly-played shape matches (the checks are OR-ed)."""
    return (
        has_consecutive_run(mains, RUN_LENGTH)
        or is_birthday_heavy(mains)
        or is_arithmetic_sequence(mains)
        or is_tightly_clustered(mains, main_max)
    )


def ticket_hints(mains: Sequence[int], special: int | None, stats: FrequencyStats) -> list[str]:
    """Short labels describing a ticket; 'Balanced' when nothing stands out."""
    hints: list[str] = []
    if has_consecutive_run(mains, 4):
        hints.append("4-in-a-row")
    elif has_consecutive_run(mains, 3):
        hints.append("3-in-a-row")
    if is_arithmetic_sequence(mains):
        hints.append("Arithmetic sequence")
    if is_birthday_heavy(mains):
        hints.append("Birthday-heavy")
    if is_tightly_clustered(mains, stats.era.main_max):
        hints.append("Tight span")

    if stats.draws > 0:
        if sum(1 for n in mains if stats.main_counts.get(n, 0) <= 1) >= 3:
            hints.append("Cold mains")
        if sum(1 for n in mains if stats.z_main.get(n, 0.0) > 1) >= 3:
            hints.append("Hot mains")
        if stats.era.has_special and special is not None:
            z = stats.z_special.get(special, 0.0)
            if z > 1:
                hints.append("Hot special")
            elif z < -1:
                hints.append("Cold special")

    if not hints:
        hints.append("Balanced")
    return hints
