"""
smartpick/models/statistical/patterns.py
Pattern insights over era-filtered history: recency histograms, repeated
main combinations, per-range ("decade") hit ratios, special-ball cycles
and overdue maps for digit and Cash Pop games.

Records are oldest first, as everywhere else in the engine.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Any, Mapping, Sequence

import numpy as np

from smartpick.models.era import EraTable, era_config_for, filter_rows_for_current_era
from smartpick.models.odds import n_choose_k
from smartpick.models.statistical.digits import DIGIT_DOMAIN, compute_digit_stats
from smartpick.models.statistical.frequency_analyzer import FrequencyAnalyzer, clean_values, require_lotto
from smartpick.models.statistical.k_of_n import compute_k_of_n_stats
from smartpick.models.types import (
    ComboBucket,
    ComboBuckets,
    DecadeSegment,
    DigitRecord,
    DrawRecord,
    EraConfig,
    KOfNRecord,
    RecencyBin,
    SpecialCycle,
)
from smartpick.utils.logger import get_logger

log = get_logger("stats.patterns")

MIN_BINS = 5
MAX_BINS = 12
VALUES_PER_BIN = 8
WIDE_POOL = 70           # pools this large split into fixed tens
SEGMENTS = 7
CASH_POP_DOMAIN = 15


def mains_from_record(record: DrawRecord, era: EraConfig) -> tuple[int, ...]:
    """
    Sorted, de-duplicated mains of one draw. Some feeds store the last main
    of a 6-pick game without a special ball in the special slot.
    """
    raw = list(record.mains)
    if len(raw) < era.main_pick and not era.has_special and record.special is not None:
        raw.append(record.special)
    return tuple(sorted(clean_values(raw, era.main_min, era.main_max)[: era.main_pick]))


def combo_key(mains: Sequence[int]) -> str:
    return "-".join(str(n) for n in sorted(mains))


# ── Recency ───────────────────────────────────────────────────────

def build_recency_histogram(last_seen: Mapping[int, int | None], max_draws: int) -> list[RecencyBin]:
    """
    Bucket every value by draws since it was last seen.

    Never-seen values count as max_draws. The bin count scales with the
    domain (one per 8 values, clamped to 5..12); bins share one width and
    the last bin is open-ended. `expected` is the per-bin count a uniform
    spread would give.
    """
    if not last_seen:
        return []
    max_draws = max(0, max_draws)
    values = sorted(last_seen)
    gaps = np.array(
        [last_seen[v] if last_seen[v] is not None else max_draws for v in values],
        dtype=int,
    )

    bin_count = min(MAX_BINS, max(MIN_BINS, math.ceil(len(values) / VALUES_PER_BIN)))
    max_gap = int(gaps.max())
    width = 1 if max_gap <= 0 else max(1, math.ceil(max_gap / bin_count))
    idx = np.minimum(np.minimum(gaps, max_draws) // width, bin_count - 1)
    expected = len(values) / bin_count

    bins: list[RecencyBin] = []
    for i in range(bin_count):
        members = tuple(v for v, b in zip(values, idx) if b == i)
        bins.append(RecencyBin(
            start=i * width,
            end=None if i == bin_count - 1 else (i + 1) * width - 1,
            count=len(members),
            expected=expected,
            members=members,
        ))
    return bins


def build_digit_overdue(records: Sequence[DigitRecord], k: int) -> dict[int, int | None]:
    """Draws since each digit 0-9 last appeared, Fireball included."""
    last_seen = dict(compute_digit_stats(records, k).last_seen)
    for idx, record in enumerate(reversed(records)):
        if record.fireball is None:
            continue
        for d in clean_values([record.fireball], 0, DIGIT_DOMAIN - 1):
            if last_seen[d] is None or idx < last_seen[d]:
                last_seen[d] = idx
    return last_seen


def build_cash_pop_last_seen(
    records: Sequence[KOfNRecord],
    domain_size: int = CASH_POP_DOMAIN,
) -> dict[int, int | None]:
    return compute_k_of_n_stats(records, 1, domain_size).last_seen


# ── Lotto ─────────────────────────────────────────────────────────

def build_combo_buckets(
    records: Sequence[DrawRecord],
    game: str,
    era_cfg: EraConfig | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> ComboBuckets:
    """
    Group draws by their exact main combination, most repeated first
    (ties by key). total_combos is C(main_max, main_pick) for the era.
    """
    if not records:
        return ComboBuckets(buckets=[], total_combos=None, distinct_seen=0)
    era = era_cfg or era_config_for(game, as_of=as_of, table=table)
    require_lotto(era, game)

    grouped: dict[str, tuple[tuple[int, ...], list[date]]] = {}
    for record in records:
        mains = mains_from_record(record, era)
        key = combo_key(mains)
        grouped.setdefault(key, (mains, []))[1].append(record.date)

    buckets = [
        ComboBucket(key=key, mains=mains, count=len(dates), dates=tuple(dates))
        for key, (mains, dates) in grouped.items()
    ]
    buckets.sort(key=lambda b: (-b.count, b.key))
    repeats = sum(1 for b in buckets if b.count > 1)
    if repeats:
        log.debug(f"{game}: {repeats} main combinations drawn more than once")
    return ComboBuckets(
        buckets=buckets,
        total_combos=n_choose_k(era.main_max, era.main_pick),
        distinct_seen=len(buckets),
    )


def build_decade_strip(
    records: Sequence[DrawRecord],
    game: str,
    era_cfg: EraConfig | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> list[DecadeSegment]:
    """
    Split 1..main_max into even ranges and compare hits with the uniform
    expectation draws * main_pick * range_size / main_max.
    """
    if not records:
        return []
    era = era_cfg or era_config_for(game, as_of=as_of, table=table)
    require_lotto(era, game)

    size = 10 if era.main_max >= WIDE_POOL else math.ceil(era.main_max / SEGMENTS)
    starts = list(range(1, era.main_max + 1, size))
    all_mains = np.array([n for r in records for n in mains_from_record(r, era)], dtype=int)
    idx = np.clip((all_mains - 1) // size, 0, len(starts) - 1)
    hits = np.bincount(idx, minlength=len(starts))

    segments: list[DecadeSegment] = []
    for i, start in enumerate(starts):
        end = min(start + size - 1, era.main_max)
        expected = len(records) * era.main_pick * (end - start + 1) / era.main_max
        segments.append(DecadeSegment(
            start=start,
            end=end,
            hits=int(hits[i]),
            expected=expected,
            ratio=int(hits[i]) / expected if expected > 0 else 1.0,
        ))
    return segments


def build_special_cycles(
    records: Sequence[DrawRecord],
    game: str,
    era_cfg: EraConfig | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> list[SpecialCycle]:
    """
    Per special ball: draws since last seen, mean gap between appearances
    and times seen. Specials never seen, or seen once, get the history
    length as their gap. Longest-running first, ties by ball number.
    """
    if not records:
        return []
    era = era_cfg or era_config_for(game, as_of=as_of, table=table)
    require_lotto(era, game)
    if not era.has_special:
        return []

    positions: dict[int, list[int]] = {s: [] for s in range(1, era.special_max + 1)}
    for i, record in enumerate(records):
        if record.special is None:
            continue
        for s in clean_values([record.special], 1, era.special_max):
            positions[s].append(i)

    total = len(records)
    cycles = [
        SpecialCycle(
            n=s,
            last_gap=total - 1 - idxs[-1] if idxs else total,
            avg_gap=float(np.diff(idxs).mean()) if len(idxs) >= 2 else float(total),
            seen=len(idxs),
        )
        for s, idxs in positions.items()
    ]
    cycles.sort(key=lambda c: -c.last_gap)
    return cycles


def build_lotto_insights(
    records: Sequence[DrawRecord],
    game: str,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> dict[str, Any]:
    """All lotto insights for the current era as one plain dict."""
    analyzer = FrequencyAnalyzer(game, as_of=as_of, table=table)
    era = analyzer.era
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    stats = analyzer.get_stats(filtered)
    return {
        "recency_main": [b.to_dict() for b in build_recency_histogram(stats.last_seen_main, stats.draws)],
        "recency_special": [b.to_dict() for b in build_recency_histogram(stats.last_seen_special, stats.draws)],
        "combos": build_combo_buckets(filtered, game, era_cfg=era).to_dict(),
        "decades": [s.to_dict() for s in build_decade_strip(filtered, game, era_cfg=era)],
        "special_cycles": [c.to_dict() for c in build_special_cycles(filtered, game, era_cfg=era)],
    }
