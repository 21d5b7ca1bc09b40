"""
smartpick/models/odds.py
Top-prize odds ("1 in N") derived from the active era's matrix.
"""
from __future__ import annotations

import math
from datetime import date

from smartpick.models.era import EraTable, era_config_for
from smartpick.models.types import GameKind

QUICK_DRAW_POOL = 80
QUICK_DRAW_DRAWN = 20
QUICK_DRAW_MAX_SPOTS = 10


def n_choose_k(n: int, k: int) -> int:
    if k < 0 or n < 0 or k > n:
        return 0
    return math.comb(n, k)


def keno_odds(spots: int, drawn: int, pool: int) -> int:
    """Odds of hitting all `spots` picks when `drawn` of `pool` balls come up."""
    if not 1 <= spots <= drawn:
        raise ValueError(f"spots must be in 1..{drawn}, got {spots}")
    return round(n_choose_k(pool, spots) / n_choose_k(drawn, spots))


def quick_draw_odds(spots: int) -> int:
    if not 1 <= spots <= QUICK_DRAW_MAX_SPOTS:
        raise ValueError(f"Quick Draw plays 1..{QUICK_DRAW_MAX_SPOTS} spots, got {spots}")
    return keno_odds(spots, QUICK_DRAW_DRAWN, QUICK_DRAW_POOL)


def all_or_nothing_odds(pick: int = 12, pool: int = 24) -> int:
    # matching all or none of the picks both win the top prize
    return round(n_choose_k(pool, pick) / 2)


def jackpot_odds(
    game: str,
    as_of: date | None = None,
    table: EraTable | None = None,
    spots: int | None = None,
) -> int | None:
    """
    Top-prize odds for a game's current era, or None when they depend on a
    play choice that was not given (Quick Draw without `spots`).

    Lotto games multiply C(main_max, main_pick) by the special domain;
    digit games count straight (exact order) plays.
    """
    era = era_config_for(game, as_of=as_of, table=table)

    if era.kind == GameKind.DIGITS:
        return 10 ** era.main_pick
    if era.kind == GameKind.LOTTO:
        return n_choose_k(era.main_max, era.main_pick) * max(era.special_max, 1)

    if game == "ny_quick_draw":
        return quick_draw_odds(spots) if spots is not None else None
    if game == "ny_pick10":
        return keno_odds(era.main_pick, QUICK_DRAW_DRAWN, era.main_max)
    if game == "tx_all_or_nothing":
        return all_or_nothing_odds(era.main_pick, era.main_max)
    return n_choose_k(era.main_max, era.main_pick)
