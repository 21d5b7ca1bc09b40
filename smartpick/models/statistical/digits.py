"""
smartpick/models/statistical/digits.py
Digit games (Pick 2-5, Numbers, Win 4, Daily 3/4): digits 0-9 drawn with
repetition, so every position is counted and tickets may repeat digits.
"""
from __future__ import annotations

import math
from collections import Counter
from datetime import date
from typing import Sequence

from smartpick.models.era import EraTable, era_config_for, filter_rows_for_current_era
from smartpick.models.errors import ConfigurationError
from smartpick.models.statistical.frequency_analyzer import clean_values, coef_var, z_scores
from smartpick.models.statistical.recommendation import damp_for_short_history, recommend_from_cv
from smartpick.models.types import DigitRecord, DigitStats, GameKind, WeightingRecommendation
from smartpick.utils.logger import get_logger

log = get_logger("stats.digits")

DIGIT_DOMAIN = 10

# Sums this far from the k * 4.5 mean are flagged as outliers.
SUM_BOUNDS: dict[int, tuple[int, int]] = {
    2: (4, 14),
    3: (6, 21),
    4: (8, 28),
    5: (10, 35),
}


def compute_digit_stats(records: Sequence[DigitRecord], k: int) -> DigitStats:
    """
    Per-digit counts over every position. Rows with the wrong number of
    digits are skipped whole; stray values outside 0-9 are skipped alone.
    """
    counts = {d: 0 for d in range(DIGIT_DOMAIN)}
    last_seen: dict[int, int | None] = {d: None for d in range(DIGIT_DOMAIN)}
    draws = 0

    for idx, record in enumerate(reversed(records)):
        if len(record.digits) != k:
            continue
        draws += 1
        for d in clean_values(record.digits, 0, DIGIT_DOMAIN - 1, distinct=False):
            counts[d] += 1
            if last_seen[d] is None:
                last_seen[d] = idx

    skipped = len(records) - draws
    if skipped:
        log.debug(f"Skipped {skipped} digit rows without exactly {k} digits")

    return DigitStats(
        draws=draws,
        k=k,
        counts=counts,
        last_seen=last_seen,
        z=z_scores(counts, draws, k / DIGIT_DOMAIN) if draws else {d: 0.0 for d in counts},
        cv=coef_var(counts.values()) if draws else 0.0,
    )


def digit_stats_for_game(
    records: Sequence[DigitRecord],
    game: str,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> DigitStats:
    era = era_config_for(game, as_of=as_of, table=table)
    if era.kind != GameKind.DIGITS:
        raise ConfigurationError(f"{game} is not a digit game")
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    return compute_digit_stats(filtered, era.main_pick)


def recommend_digits(stats: DigitStats) -> WeightingRecommendation:
    rec = recommend_from_cv(stats.cv, "digits")
    return damp_for_short_history(rec, stats.draws, DIGIT_DOMAIN, "digits")


# ── Ticket helpers ────────────────────────────────────────────────

def is_palindrome(digits: Sequence[int]) -> bool:
    return list(digits) == list(reversed(digits))


def longest_run_len(digits: Sequence[int]) -> int:
    """Longest stretch where neighbours differ by exactly one (up or down)."""
    if not digits:
        return 0
    best = cur = 1
    for prev, d in zip(digits, digits[1:]):
        cur = cur + 1 if abs(d - prev) == 1 else 1
        best = max(best, cur)
    return best


def max_multiplicity(digits: Sequence[int]) -> int:
    return max(Counter(digits).values(), default=0)


def multiset_permutations_count(digits: Sequence[int]) -> int:
    """Distinct orderings of the digits, i.e. the size of a box play."""
    denom = 1
    for c in Counter(digits).values():
        denom *= math.factorial(c)
    return math.factorial(len(digits)) // denom


def box_variant_label(digits: Sequence[int], k: int) -> str | None:
    """'6-Way Box', '3-Way Box', ...; None when a box play is meaningless."""
    if len(digits) != k:
        return None
    ways = multiset_permutations_count(digits)
    return f"{ways}-Way Box" if ways > 1 else None


def straight_only_label(digits: Sequence[int], k: int) -> str | None:
    if len(digits) != k:
        return None
    return "Straight" if max_multiplicity(digits) == k else None


def digit_ticket_hints(digits: Sequence[int], stats: DigitStats) -> list[str]:
    if len(digits) != stats.k:
        return ["Invalid"]
    hints: list[str] = []

    mult = max_multiplicity(digits)
    if mult >= 4:
        hints.append("Quad")
    elif mult == 3:
        hints.append("Triple")
    elif mult == 2:
        hints.append("Pair")

    if is_palindrome(digits):
        hints.append("Palindrome")
    if longest_run_len(digits) >= 3:
        hints.append("Sequential digits")

    lo, hi = SUM_BOUNDS.get(stats.k, (0, 9 * stats.k))
    total = sum(digits)
    if total <= lo or total >= hi:
        hints.append("Sum outlier")

    side = math.ceil(stats.k * 2 / 3)
    if sum(1 for d in digits if d <= 4) >= side:
        hints.append("Low-heavy")
    if sum(1 for d in digits if d >= 5) >= side:
        hints.append("High-heavy")

    half = math.ceil(stats.k / 2)
    if sum(1 for d in digits if stats.z.get(d, 0.0) > 1) >= half:
        hints.append("Hot digits")
    if sum(1 for d in digits if stats.z.get(d, 0.0) < -1) >= half:
        hints.append("Cold digits")

    if not hints:
        hints.append("Balanced")
    return hints
