"""
smartpick/scratchers/game.py
Scratch-off game snapshot as published in a jurisdiction's index.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Mapping


class Lifecycle(str, Enum):
    NEW = "new"
    CONTINUING = "continuing"


@dataclass(frozen=True)
class ScratcherGame:
    """Read-only snapshot; game_number is the identity key. Every metric is optional."""
    game_number: int
    name: str
    price: float | None = None
    top_prize_value: float | None = None
    top_prizes_original: int | None = None
    top_prizes_remaining: int | None = None
    overall_odds: float | None = None
    adjusted_odds: float | None = None
    start_date: date | None = None
    lifecycle: Lifecycle | None = None

    @property
    def top_prize_ratio(self) -> float:
        """remaining / original; 0 when the original count is missing or 0."""
        original = self.top_prizes_original or 0
        if original <= 0:
            return 0.0
        return (self.top_prizes_remaining or 0) / original

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ScratcherGame":
        """Build from an index entry (camelCase keys, ISO dates)."""
        start = raw.get("startDate")
        lifecycle = raw.get("lifecycle")
        return cls(
            game_number=int(raw["gameNumber"]),
            name=str(raw.get("name", "")),
            price=raw.get("price"),
            top_prize_value=raw.get("topPrizeValue"),
            top_prizes_original=raw.get("topPrizesOriginal"),
            top_prizes_remaining=raw.get("topPrizesRemaining"),
            overall_odds=raw.get("overallOdds"),
            adjusted_odds=raw.get("adjustedOdds"),
            start_date=date.fromisoformat(start[:10]) if start else None,
            lifecycle=Lifecycle(lifecycle) if lifecycle else None,
        )
