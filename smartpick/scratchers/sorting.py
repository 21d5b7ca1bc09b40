"""
smartpick/scratchers/sorting.py
Comparators for the scratcher list views. Every key breaks ties on
game_number ascending and puts games missing the sort value (None, NaN or
infinite) last, so the same input always yields the same order.
"""
from __future__ import annotations

import math
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Mapping

from smartpick.scratchers.game import ScratcherGame
from smartpick.scratchers.scoring import ScoredScratcher

Comparator = Callable[[ScratcherGame, ScratcherGame], int]


class SortKey(str, Enum):
    BEST = "best"
    ADJUSTED_ODDS = "adjusted"
    ODDS = "odds"
    PRICE = "price"
    TOP_PRIZE_VALUE = "topPrizeValue"
    TOP_PRIZES_REMAINING = "topPrizesRemain"
    LAUNCH = "launch"


# key -> (getter, descending)
_FIELDS: dict[SortKey, tuple[Callable[[ScratcherGame], Any], bool]] = {
    SortKey.ADJUSTED_ODDS: (lambda g: g.adjusted_odds, False),
    SortKey.ODDS: (lambda g: g.overall_odds, False),
    SortKey.PRICE: (lambda g: g.price, False),
    SortKey.TOP_PRIZE_VALUE: (lambda g: g.top_prize_value, True),
    SortKey.TOP_PRIZES_REMAINING: (lambda g: g.top_prizes_remaining, True),
    SortKey.LAUNCH: (lambda g: g.start_date, True),
}


def _score_lookup(
    scores: Mapping[int, float] | Iterable[ScoredScratcher] | None,
) -> dict[int, float]:
    if scores is None:
        return {}
    if isinstance(scores, Mapping):
        return dict(scores)
    return {s.game.game_number: s.score for s in scores}


def _missing(v: Any) -> bool:
    return v is None or (isinstance(v, float) and not math.isfinite(v))


def _cmp(x: Any, y: Any) -> int:
    return (x > y) - (x < y)


def comparator(
    key: SortKey | str,
    scores: Mapping[int, float] | Iterable[ScoredScratcher] | None = None,
) -> Comparator:
    """
    cmp(a, b) for one sort key. BEST orders by composite score (highest
    first) and needs `scores`, either rank_scratchers output or a
    game_number -> score mapping; unscored games go last.
    """
    key = SortKey(key)
    if key == SortKey.BEST:
        lookup = _score_lookup(scores)
        getter, descending = (lambda g: lookup.get(g.game_number)), True
    else:
        getter, descending = _FIELDS[key]

    def _compare(a: ScratcherGame, b: ScratcherGame) -> int:
        va, vb = getter(a), getter(b)
        ma, mb = _missing(va), _missing(vb)
        if ma or mb:
            primary = ma - mb
        else:
            primary = _cmp(vb, va) if descending else _cmp(va, vb)
        return primary or _cmp(a.game_number, b.game_number)

    return _compare


def sort_games(
    games: Iterable[ScratcherGame],
    key: SortKey | str,
    scores: Mapping[int, float] | Iterable[ScoredScratcher] | None = None,
) -> list[ScratcherGame]:
    return sorted(games, key=cmp_to_key(comparator(key, scores)))
