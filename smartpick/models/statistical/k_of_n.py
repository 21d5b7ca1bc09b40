"""
smartpick/models/statistical/k_of_n.py
k distinct values from 1..N with no special ball: Pick 10, Quick Draw,
All or Nothing, Cash Pop.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Sequence

from smartpick.models.era import EraTable, era_config_for, filter_rows_for_current_era
from smartpick.models.errors import ConfigurationError
from smartpick.models.pattern_filter import BIRTHDAY_MAX, has_consecutive_run
from smartpick.models.statistical.frequency_analyzer import clean_values, coef_var, z_scores
from smartpick.models.statistical.recommendation import damp_for_short_history, recommend_from_cv
from smartpick.models.types import GameKind, KOfNRecord, KOfNStats, WeightingRecommendation
from smartpick.utils.logger import get_logger

log = get_logger("stats.k_of_n")


def compute_k_of_n_stats(records: Sequence[KOfNRecord], k: int, n: int) -> KOfNStats:
    """
    Counts over 1..n. A row only counts as a draw when it holds exactly k
    distinct in-range values; anything else is skipped whole.
    """
    counts = {v: 0 for v in range(1, n + 1)}
    last_seen: dict[int, int | None] = {v: None for v in counts}
    draws = 0

    for idx, record in enumerate(reversed(records)):
        values = clean_values(record.values, 1, n)
        if len(values) != k or len(record.values) != k:
            continue
        draws += 1
        for v in values:
            counts[v] += 1
            if last_seen[v] is None:
                last_seen[v] = idx

    if draws < len(records):
        log.debug(f"Skipped {len(records) - draws} malformed {k}-of-{n} rows")

    return KOfNStats(
        draws=draws,
        k=k,
        n=n,
        counts=counts,
        last_seen=last_seen,
        z=z_scores(counts, draws, k / n) if draws else {v: 0.0 for v in counts},
        cv=coef_var(counts.values()) if draws else 0.0,
    )


def k_of_n_stats_for_game(
    records: Sequence[KOfNRecord],
    game: str,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> KOfNStats:
    era = era_config_for(game, as_of=as_of, table=table)
    if era.kind != GameKind.K_OF_N:
        raise ConfigurationError(f"{game} is not a k-of-N game")
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    return compute_k_of_n_stats(filtered, era.main_pick, era.main_max)


def recommend_k_of_n(stats: KOfNStats) -> WeightingRecommendation:
    rec = recommend_from_cv(stats.cv, "k_of_n")
    return damp_for_short_history(rec, stats.draws, stats.n, "k_of_n")


def k_of_n_ticket_hints(values: Sequence[int], stats: KOfNStats) -> list[str]:
    """Hint labels scaled to the pick size (a 10-spot ticket is judged as a 10-spot)."""
    if not values:
        return ["Invalid"]
    a = sorted(values)
    k = len(a)
    hints: list[str] = []

    if k > 1 and a[-1] - a[0] <= stats.n // max(k, 1):
        hints.append("Tight span")
    if has_consecutive_run(a, 3):
        hints.append("3-in-a-row")
    if stats.n > BIRTHDAY_MAX and k >= 4 and sum(1 for v in a if v <= BIRTHDAY_MAX) >= math.ceil(k * 0.6):
        hints.append("Birthday-heavy")

    half = math.ceil(k / 2)
    if sum(1 for v in a if stats.z.get(v, 0.0) > 1) >= half:
        hints.append("Hot mains")
    if sum(1 for v in a if stats.z.get(v, 0.0) < -1) >= half:
        hints.append("Cold mains")

    if not hints:
        hints.append("Balanced")
    return hints
