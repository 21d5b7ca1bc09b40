"""
smartpick/models/statistical/frequency_analyzer.py
Per-value hit counts, dispersion (CV), recency and z-scores for the mains
and the special ball of one game's current era.
"""
from __future__ import annotations

import math
from datetime import date
from numbers import Integral
from typing import Iterable, Sequence

import numpy as np

from smartpick.models.era import EraTable, era_config_for
from smartpick.models.types import DrawRecord, EraConfig, FrequencyStats, GameKind
from smartpick.utils.logger import get_logger

log = get_logger("stats.frequency")

_STATS_FOR_KIND = {
    GameKind.DIGITS: "compute_digit_stats",
    GameKind.K_OF_N: "compute_k_of_n_stats",
}


def require_lotto(era: EraConfig, game: str) -> None:
    """Mains/special analysis only applies to lotto-style games."""
    if era.kind != GameKind.LOTTO:
        raise ValueError(f"{game} is a {era.kind.value} game; use {_STATS_FOR_KIND[era.kind]}")


def coef_var(values: Iterable[float]) -> float:
    """Population stddev / mean. 0 for empty input or a zero mean."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return 0.0
    mean = float(arr.mean())
    if mean == 0:
        return 0.0
    return float(arr.std() / mean)


def z_scores(counts: dict[int, int], draws: int, p: float) -> dict[int, float]:
    """Deviation of each count from the binomial expectation draws * p."""
    expected = draws * p
    sd = math.sqrt(max(draws * p * (1 - p), 1e-9))
    return {n: (c - expected) / sd for n, c in counts.items()}


def clean_values(values: Sequence[int], lo: int, hi: int, distinct: bool = True) -> list[int]:
    """
    Drop values that cannot be counted (non-integers, out of [lo, hi],
    repeats when distinct). A single bad value never poisons a record.
    """
    kept: list[int] = []
    seen: set[int] = set()
    for v in values:
        if not isinstance(v, Integral) or isinstance(v, bool) or not (lo <= v <= hi):
            continue
        v = int(v)
        if distinct and v in seen:
            continue
        seen.add(v)
        kept.append(v)
    return kept


def compute_stats(
    records: Sequence[DrawRecord],
    game: str,
    era_cfg: EraConfig | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> FrequencyStats:
    """
    Aggregate hit counts over records (assumed era-filtered, oldest first).

    Mains are counted as an unordered set per draw. Counts do not depend on
    record order; only last_seen does, since it is measured from the newest
    record. With zero draws every count is 0 and both CVs are 0.
    """
    era = era_cfg or era_config_for(game, as_of=as_of, table=table)
    require_lotto(era, game)

    main_counts: dict[int, int] = {n: 0 for n in era.main_domain}
    special_counts: dict[int, int] = {n: 0 for n in range(1, era.special_max + 1)}
    last_seen_main: dict[int, int | None] = {n: None for n in main_counts}
    last_seen_special: dict[int, int | None] = {n: None for n in special_counts}

    skipped = 0
    total = len(records)
    # newest -> oldest so the first sighting is the most recent one
    for idx, record in enumerate(reversed(records)):
        mains = clean_values(record.mains, era.main_min, era.main_max)
        skipped += len(record.mains) - len(mains)
        for n in mains[: era.main_pick]:
            main_counts[n] += 1
            if last_seen_main[n] is None:
                last_seen_main[n] = idx

        if era.has_special:
            sp = clean_values([record.special] if record.special is not None else [], 1, era.special_max)
            if record.special is not None and not sp:
                skipped += 1
            for n in sp:
                special_counts[n] += 1
                if last_seen_special[n] is None:
                    last_seen_special[n] = idx

    if skipped:
        log.debug(f"{game}: skipped {skipped} malformed values across {total} draws")

    main_cv = coef_var(main_counts.values()) if total else 0.0
    special_cv = coef_var(special_counts.values()) if total and era.has_special else 0.0

    p_main = min(1.0, era.main_pick / era.domain_size)
    z_main = z_scores(main_counts, total, p_main)
    z_special = z_scores(special_counts, total, 1 / era.special_max) if era.has_special else {}

    return FrequencyStats(
        draws=total,
        main_counts=main_counts,
        special_counts=special_counts,
        main_cv=main_cv,
        special_cv=special_cv,
        era=era,
        last_seen_main=last_seen_main,
        last_seen_special=last_seen_special,
        z_main=z_main,
        z_special=z_special,
    )


def hot_numbers(stats: FrequencyStats, top_n: int = 10) -> list[int]:
    """Most frequent mains; ties go to the smaller number."""
    counts = stats.main_counts
    return sorted(counts, key=lambda n: (-counts[n], n))[:top_n]


def cold_numbers(stats: FrequencyStats, bottom_n: int = 10) -> list[int]:
    counts = stats.main_counts
    return sorted(counts, key=lambda n: (counts[n], n))[:bottom_n]


def recency_hot_fraction(last_seen: dict[int, int | None], window: int = 10) -> float:
    """Share of the domain drawn within the last `window` draws."""
    if not last_seen:
        return 0.0
    hot = sum(1 for v in last_seen.values() if v is not None and v <= window)
    return hot / len(last_seen)


class FrequencyAnalyzer:
    """Frequency view of one game's current era; the era is fixed at construction."""

    def __init__(
        self,
        game: str,
        era_cfg: EraConfig | None = None,
        as_of: date | None = None,
        table: EraTable | None = None,
        recency_window: int = 10,
    ):
        self.game = game
        self.era = era_cfg or era_config_for(game, as_of=as_of, table=table)
        require_lotto(self.era, game)
        self.recency_window = recency_window

    def get_stats(self, records: Sequence[DrawRecord]) -> FrequencyStats:
        return compute_stats(records, self.game, era_cfg=self.era)

    def get_hot_numbers(self, records: Sequence[DrawRecord], top_n: int = 10) -> list[int]:
        return hot_numbers(self.get_stats(records), top_n)

    def get_cold_numbers(self, records: Sequence[DrawRecord], bottom_n: int = 10) -> list[int]:
        return cold_numbers(self.get_stats(records), bottom_n)

    def get_recency(self, stats: FrequencyStats) -> tuple[float, float]:
        """(main, special) share of the domain seen within the recency window."""
        return (
            recency_hot_fraction(stats.last_seen_main, self.recency_window),
            recency_hot_fraction(stats.last_seen_special, self.recency_window),
        )
