"""
smartpick/pipeline/ticket_service.py
One call from history to a presentation-ready pick report.
Handles lotto games (mains + optional special), digit games and k-of-N games.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Sequence

import numpy as np

from smartpick.models.era import EraTable, era_config_for, era_tooltip, filter_rows_for_current_era
from smartpick.models.odds import jackpot_odds
from smartpick.models.pattern_filter import ticket_hints
from smartpick.models.statistical.digits import (
    box_variant_label,
    digit_stats_for_game,
    digit_ticket_hints,
    recommend_digits,
    straight_only_label,
)
from smartpick.models.statistical.frequency_analyzer import cold_numbers, hot_numbers
from smartpick.models.statistical.k_of_n import k_of_n_stats_for_game, k_of_n_ticket_hints, recommend_k_of_n
from smartpick.models.statistical.patterns import build_cash_pop_last_seen, build_digit_overdue, build_lotto_insights
from smartpick.models.statistical.recommendation import analyze_game
from smartpick.models.ticket_generator import generate_digit_ticket, generate_k_of_n_ticket, generate_tickets
from smartpick.models.types import EraConfig, GameKind, GenerateOptions
from smartpick.utils.config import get_generator_settings
from smartpick.utils.logger import get_logger

log = get_logger("pipeline.tickets")


def _era_dict(game: str, era: EraConfig, as_of: date | None, table: EraTable | None) -> dict[str, Any]:
    return {
        "label": era.label,
        "start": era.start.isoformat(),
        "main_max": era.main_max,
        "main_pick": era.main_pick,
        "special_max": era.special_max,
        "special_label": era.special_label,
        "tooltip": era_tooltip(game, as_of=as_of, table=table),
    }


def _distinct(draw, count: int) -> list:
    """Call draw() until `count` distinct results or the attempt budget runs out."""
    budget = count * get_generator_settings()["attempts_per_ticket"]
    seen: set = set()
    out: list = []
    for _ in range(budget):
        if len(out) >= count:
            break
        candidate = draw()
        key = tuple(candidate)
        if key in seen:
            continue
        seen.add(key)
        out.append(candidate)
    return out


def _lotto_report(records, game, era, count, avoid_common, rng, as_of, table) -> dict[str, Any]:
    analysis = analyze_game(records, game, as_of=as_of, table=table)
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    opts = GenerateOptions.from_analysis(analysis, avoid_common=avoid_common)
    tickets = generate_tickets(filtered, game, count, opts, era_cfg=era, rng=rng)
    return {
        "analysis": analysis.to_dict(),
        "hot": hot_numbers(analysis.stats),
        "cold": cold_numbers(analysis.stats),
        "patterns": build_lotto_insights(filtered, game, as_of=as_of, table=table),
        "tickets": [
            {**t.to_dict(), "hints": ticket_hints(t.mains, t.special, analysis.stats)}
            for t in tickets
        ],
    }


def _digit_report(records, game, count, rng, as_of, table) -> dict[str, Any]:
    stats = digit_stats_for_game(records, game, as_of=as_of, table=table)
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    rec = recommend_digits(stats)
    tickets = _distinct(lambda: generate_digit_ticket(stats, rec.mode, rec.alpha, rng), count)
    return {
        "analysis": {"game": game, "draws": stats.draws, "cv": stats.cv, "rec": rec.to_dict()},
        "overdue": build_digit_overdue(filtered, stats.k),
        "tickets": [
            {
                "digits": list(t),
                "hints": digit_ticket_hints(t, stats),
                "box": box_variant_label(t, stats.k),
                "straight": straight_only_label(t, stats.k),
            }
            for t in tickets
        ],
    }


def _k_of_n_report(records, game, count, rng, spots, as_of, table) -> dict[str, Any]:
    stats = k_of_n_stats_for_game(records, game, as_of=as_of, table=table)
    rec = recommend_k_of_n(stats)
    tickets = _distinct(lambda: generate_k_of_n_ticket(stats, rec.mode, rec.alpha, rng, spots=spots), count)
    body = {
        "analysis": {"game": game, "draws": stats.draws, "cv": stats.cv, "rec": rec.to_dict()},
        "tickets": [{"values": t, "hints": k_of_n_ticket_hints(t, stats)} for t in tickets],
    }
    if stats.k == 1:
        # Cash Pop style single-number games
        filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
        body["last_seen"] = build_cash_pop_last_seen(filtered, stats.n)
    return body


def build_pick_report(
    records: Sequence[Any],
    game: str,
    count: int = 5,
    avoid_common: bool = True,
    rng: np.random.Generator | None = None,
    spots: int | None = None,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> dict:
    """
    Full flow for one game:
    1. Resolve the current era
    2. Stats + recommendation on the era's draws
    3. Up to `count` distinct weighted tickets, each with hint labels
    4. Jackpot odds
    5. Pattern insights (recency, combos, decades, special cycles, overdue)
    Returns a plain dict; `tickets` may be shorter than `count`.
    """
    log.info(f"[REPORT] Starting for {game} ({len(records)} records, {count} tickets)")
    era = era_config_for(game, as_of=as_of, table=table)
    rng = rng or np.random.default_rng()

    if era.kind == GameKind.DIGITS:
        body = _digit_report(records, game, count, rng, as_of, table)
    elif era.kind == GameKind.K_OF_N:
        body = _k_of_n_report(records, game, count, rng, spots, as_of, table)
    else:
        body = _lotto_report(records, game, era, count, avoid_common, rng, as_of, table)

    result = {
        "game": game,
        "kind": era.kind.value,
        "era": _era_dict(game, era, as_of, table),
        "jackpot_odds": jackpot_odds(game, as_of=as_of, table=table, spots=spots),
        **body,
        "success": True,
    }
    log.info(f"[REPORT] {game} → {len(result['tickets'])}/{count} tickets | era {era.label}")
    return result
