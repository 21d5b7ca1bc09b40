"""
smartpick/models/ticket_generator.py
Weighted random tickets biased by historical frequency.

Per number class the sampling weight of value v is
    (1 - alpha) * 1/N + alpha * historical(v)
with historical = counts normalised (hot) or 1/(count + 1) normalised
(cold). alpha = 0 is exactly uniform in either mode, which is also what an
empty history collapses to: no records never raises, it samples uniformly.

Randomness comes from an injected numpy Generator so concurrent callers
never share RNG state.
"""
from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence

import numpy as np

from smartpick.models.era import EraTable, era_config_for
from smartpick.models.pattern_filter import looks_too_common
from smartpick.models.statistical.frequency_analyzer import compute_stats
from smartpick.models.types import (
    DigitStats,
    DrawRecord,
    EraConfig,
    FrequencyStats,
    GameKind,
    GeneratedTicket,
    GenerateOptions,
    KOfNStats,
    Mode,
)
from smartpick.utils.config import get_generator_settings
from smartpick.utils.logger import get_logger

log = get_logger("generator")

_MIN_MASS = 1e-12


def build_weights(
    values: Sequence[int],
    counts: Mapping[int, int],
    mode: Mode,
    alpha: float,
) -> np.ndarray:
    """Sampling distribution over `values` (aligned by position, sums to 1)."""
    n = len(values)
    uniform = np.full(n, 1.0 / n)
    alpha = min(1.0, max(0.0, float(alpha)))
    if alpha == 0.0:
        return uniform

    arr = np.array([counts.get(v, 0) for v in values], dtype=float)
    if Mode(mode) == Mode.HOT:
        total = arr.sum()
        historical = arr / total if total > 0 else uniform
    else:
        inv = 1.0 / (arr + 1.0)
        historical = inv / inv.sum()
    return (1.0 - alpha) * uniform + alpha * historical


def weighted_sample_distinct(
    k: int,
    values: Sequence[int],
    weights: np.ndarray,
    rng: np.random.Generator,
) -> list[int]:
    """
    Draw min(k, len(values)) distinct values one at a time, renormalising
    over what is left after each pick. If the remaining mass is zero the
    draw falls back to uniform over the remaining values.
    """
    n = len(values)
    w = np.asarray(weights, dtype=float)
    w = np.where(np.isfinite(w) & (w > 0), w, 0.0)
    available = np.ones(n, dtype=bool)
    picks: list[int] = []

    for _ in range(min(k, n)):
        masked = np.where(available, w, 0.0)
        total = masked.sum()
        if total <= _MIN_MASS:
            idx = int(rng.choice(np.flatnonzero(available)))
        else:
            idx = int(rng.choice(n, p=masked / total))
        picks.append(int(values[idx]))
        available[idx] = False

    return sorted(picks)


def _sample_one(values: Sequence[int], weights: np.ndarray, rng: np.random.Generator) -> int:
    return weighted_sample_distinct(1, values, weights, rng)[0]


def generate_ticket(
    records: Sequence[DrawRecord],
    game: str,
    opts: GenerateOptions | None = None,
    era_cfg: EraConfig | None = None,
    rng: np.random.Generator | None = None,
    max_attempts: int | None = None,
    stats: FrequencyStats | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> GeneratedTicket | None:
    """
    One ticket: mains without replacement, special independently.

    With opts.avoid_common, candidates flagged by looks_too_common are
    redrawn up to max_attempts times. A flagged ticket is never returned;
    if every attempt is flagged the result is None.
    """
    opts = opts or GenerateOptions()
    era = era_cfg or (stats.era if stats else era_config_for(game, as_of=as_of, table=table))
    if era.kind != GameKind.LOTTO:
        other = "generate_digit_ticket" if era.kind == GameKind.DIGITS else "generate_k_of_n_ticket"
        raise ValueError(f"{game} is a {era.kind.value} game; use {other}")
    rng = rng or np.random.default_rng()
    stats = stats or compute_stats(records, game, era_cfg=era)
    attempts = max_attempts if max_attempts is not None else get_generator_settings()["pattern_attempts"]

    main_values = list(era.main_domain)
    w_main = build_weights(main_values, stats.main_counts, opts.mode_main, opts.alpha_main)
    special_values = list(range(1, era.special_max + 1))
    w_special = (
        build_weights(special_values, stats.special_counts, opts.mode_special, opts.alpha_special)
        if era.has_special
        else None
    )

    for _ in range(max(1, attempts)):
        mains = weighted_sample_distinct(era.main_pick, main_values, w_main, rng)
        special = _sample_one(special_values, w_special, rng) if w_special is not None else None
        if opts.avoid_common and looks_too_common(mains, era.main_max):
            continue
        return GeneratedTicket(mains=tuple(mains), special=special)

    log.debug(f"{game}: every candidate in {attempts} attempts matched a common pattern")
    return None


def generate_tickets(
    records: Sequence[DrawRecord],
    game: str,
    count: int,
    opts: GenerateOptions | None = None,
    era_cfg: EraConfig | None = None,
    rng: np.random.Generator | None = None,
    max_attempts: int | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> list[GeneratedTicket]:
    """
    Up to `count` distinct tickets within max_attempts generate_ticket calls
    (default count * attempts_per_ticket). Running out of budget, e.g. when
    the combinatorial space is smaller than `count`, returns a short list.
    """
    if count <= 0:
        return []
    era = era_cfg or era_config_for(game, as_of=as_of, table=table)
    rng = rng or np.random.default_rng()
    stats = compute_stats(records, game, era_cfg=era)
    settings = get_generator_settings()
    budget = max_attempts if max_attempts is not None else count * settings["attempts_per_ticket"]

    seen: set[GeneratedTicket] = set()
    tickets: list[GeneratedTicket] = []
    attempts = 0
    while len(tickets) < count and attempts < budget:
        attempts += 1
        ticket = generate_ticket(records, game, opts, era_cfg=era, rng=rng, stats=stats)
        if ticket is None:
            log.warning(f"{game}: pattern avoidance rejects every candidate, stopping early")
            break
        if ticket in seen:
            continue
        seen.add(ticket)
        tickets.append(ticket)

    if len(tickets) < count:
        log.info(f"{game}: produced {len(tickets)}/{count} distinct tickets in {attempts} attempts")
    return tickets


# ── Digit and k-of-N games ────────────────────────────────────────

def generate_digit_ticket(
    stats: DigitStats,
    mode: Mode = Mode.HOT,
    alpha: float = 0.0,
    rng: np.random.Generator | None = None,
) -> tuple[int, ...]:
    """k digits 0-9, drawn independently per position (repeats allowed)."""
    rng = rng or np.random.default_rng()
    digits = list(range(10))
    weights = build_weights(digits, stats.counts, mode, alpha)
    return tuple(int(d) for d in rng.choice(digits, size=stats.k, p=weights))


def generate_k_of_n_ticket(
    stats: KOfNStats,
    mode: Mode = Mode.HOT,
    alpha: float = 0.0,
    rng: np.random.Generator | None = None,
    spots: int | None = None,
) -> list[int]:
    """`spots` (default k) distinct values from 1..N, e.g. Pick 10 or Quick Draw."""
    rng = rng or np.random.default_rng()
    values = list(range(1, stats.n + 1))
    weights = build_weights(values, stats.counts, mode, alpha)
    return weighted_sample_distinct(spots or stats.k, values, weights, rng)
