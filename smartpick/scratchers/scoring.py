"""
smartpick/scratchers/scoring.py
Composite desirability score for scratch-off games.

Four raw metrics per game, each min-max normalised across the current set:
  jackpot  top prize value                    (higher is better)
  prizes   top prizes remaining / original    (higher is better)
  odds     1 / adjusted odds, else 1 / overall odds
  price    ticket price                       (subtracted as a penalty)

score = wj * jackpot + wp * prizes + wo * odds - wprice * price

A metric whose set has max == min, or a non-finite value, normalises to
0.5 for every game. That midpoint is what keeps a single-game set, or a
set where every game shares a price, from being pushed up or down.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from smartpick.scratchers.game import ScratcherGame
from smartpick.utils.config import get_scoring_weights
from smartpick.utils.logger import get_logger

log = get_logger("scratchers.scoring")

MIDPOINT = 0.5


@dataclass(frozen=True)
class ScoringWeights:
    jackpot: float = 0.35
    prizes: float = 0.30
    odds: float = 0.25
    price: float = 0.10

    @classmethod
    def from_config(cls) -> "ScoringWeights":
        return cls(**get_scoring_weights())


@dataclass(frozen=True)
class ScoreParts:
    """Normalised, pre-weight contributions."""
    jackpot: float
    prizes: float
    odds: float
    price: float

    def to_dict(self) -> dict[str, float]:
        return {"jackpot": self.jackpot, "prizes": self.prizes, "odds": self.odds, "price": self.price}


@dataclass(frozen=True)
class ScoredScratcher:
    game: ScratcherGame
    score: float
    parts: ScoreParts

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_number": self.game.game_number,
            "name": self.game.name,
            "score": round(self.score, 4),
            "parts": self.parts.to_dict(),
        }


# ── Raw metrics ───────────────────────────────────────────────────

def jackpot_metric(game: ScratcherGame) -> float:
    return float(game.top_prize_value or 0)


def prizes_metric(game: ScratcherGame) -> float:
    return game.top_prize_ratio


def odds_metric(game: ScratcherGame) -> float:
    odds = game.adjusted_odds if game.adjusted_odds is not None else game.overall_odds
    return 1.0 / odds if odds and odds > 0 else 0.0


def price_metric(game: ScratcherGame) -> float:
    return float(game.price or 0)


def _finite_bounds(values: Iterable[float]) -> tuple[float, float] | None:
    finite = [v for v in values if math.isfinite(v)]
    if not finite:
        return None
    return min(finite), max(finite)


def norm_or_mid(x: float, bounds: tuple[float, float] | None) -> float:
    if bounds is None or not math.isfinite(x):
        return MIDPOINT
    lo, hi = bounds
    if hi == lo:
        return MIDPOINT
    return (x - lo) / (hi - lo)


def rank_scratchers(
    games: Sequence[ScratcherGame],
    weights: ScoringWeights | None = None,
) -> list[ScoredScratcher]:
    """
    Score every game and sort by score, highest first. Equal scores keep
    their input order; callers that need a fixed order on ties should sort
    with sorting.comparator(SortKey.BEST, ...) instead.
    """
    if not games:
        return []
    w = weights or ScoringWeights.from_config()

    metrics = {
        "jackpot": [jackpot_metric(g) for g in games],
        "prizes": [prizes_metric(g) for g in games],
        "odds": [odds_metric(g) for g in games],
        "price": [price_metric(g) for g in games],
    }
    bounds = {name: _finite_bounds(vals) for name, vals in metrics.items()}

    scored: list[ScoredScratcher] = []
    for i, game in enumerate(games):
        parts = ScoreParts(**{name: norm_or_mid(vals[i], bounds[name]) for name, vals in metrics.items()})
        score = (
            w.jackpot * parts.jackpot
            + w.prizes * parts.prizes
            + w.odds * parts.odds
            - w.price * parts.price
        )
        scored.append(ScoredScratcher(game=game, score=score, parts=parts))

    scored.sort(key=lambda s: s.score, reverse=True)
    log.debug(f"Ranked {len(scored)} scratchers, top={scored[0].game.game_number}")
    return scored
