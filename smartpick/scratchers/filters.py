"""
smartpick/scratchers/filters.py
Reusable predicates over ScratcherGame. Each factory takes its parameters
and returns a filter; the predicates are independent, so the order they
are applied in never changes the result.
"""
from __future__ import annotations

from typing import Callable, Iterable

from smartpick.scratchers.game import Lifecycle, ScratcherGame

Predicate = Callable[[ScratcherGame], bool]


def _always(_: ScratcherGame) -> bool:
    return True


def by_price(min_price: float | None = None, max_price: float | None = None) -> Predicate:
    """Inclusive price range. Games without a price fail once any bound is set."""
    if min_price is None and max_price is None:
        return _always
    lo = min_price if min_price is not None else float("-inf")
    hi = max_price if max_price is not None else float("inf")

    def _pred(g: ScratcherGame) -> bool:
        return g.price is not None and lo <= g.price <= hi

    return _pred


def min_top_prize_ratio(pct: float) -> Predicate:
    """Top prizes remaining / original >= pct (0..1); unknown original counts as 0."""
    return lambda g: g.top_prize_ratio >= pct


def min_top_prizes_remaining(n: int) -> Predicate:
    return lambda g: (g.top_prizes_remaining or 0) >= n


def search(query: str) -> Predicate:
    """Case-insensitive substring match on the name or the game number."""
    q = (query or "").strip().lower()
    if not q:
        return _always
    return lambda g: q in (g.name or "").lower() or q in str(g.game_number)


def lifecycle(which: Lifecycle | str | None) -> Predicate:
    if not which:
        return _always
    wanted = Lifecycle(which)
    return lambda g: g.lifecycle == wanted


def apply_filters(games: Iterable[ScratcherGame], *predicates: Predicate) -> list[ScratcherGame]:
    return [g for g in games if all(p(g) for p in predicates)]
