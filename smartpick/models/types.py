"""
smartpick/models/types.py
Immutable data model shared by every engine component.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Mode(str, Enum):
    """Sampling bias toward frequent (hot) or infrequent (cold) values."""
    HOT = "hot"
    COLD = "cold"


class NumberClass(str, Enum):
    MAIN = "main"
    SPECIAL = "special"


class GameKind(str, Enum):
    LOTTO = "lotto"      # distinct mains + optional special
    DIGITS = "digits"    # 0-9 with repetition
    K_OF_N = "k_of_n"    # k distinct values from 1..N, no special


# ── Rule table ────────────────────────────────────────────────────

@dataclass(frozen=True)
class EraConfig:
    """Rules of one game during one era (fixed matrix)."""
    start: date
    label: str
    main_max: int
    main_pick: int
    special_max: int = 0
    special_label: str | None = None
    description: str = ""
    kind: GameKind = GameKind.LOTTO

    @property
    def has_special(self) -> bool:
        return self.special_max > 0

    @property
    def main_min(self) -> int:
        return 0 if self.kind == GameKind.DIGITS else 1

    @property
    def main_domain(self) -> range:
        return range(self.main_min, self.main_max + 1)

    @property
    def domain_size(self) -> int:
        return self.main_max - self.main_min + 1


# ── Draw records (produced by ingestion, read-only here) ─────────

@dataclass(frozen=True)
class DrawRecord:
    date: date
    mains: tuple[int, ...]
    special: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "mains", tuple(self.mains))


@dataclass(frozen=True)
class DigitRecord:
    date: date
    digits: tuple[int, ...]
    fireball: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "digits", tuple(self.digits))


@dataclass(frozen=True)
class KOfNRecord:
    date: date
    values: tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


Pick10Record = KOfNRecord
QuickDrawRecord = KOfNRecord
AllOrNothingRecord = KOfNRecord


# ── Statistics artifacts ──────────────────────────────────────────

@dataclass(frozen=True)
class FrequencyStats:
    """
    Per-value hit counts and dispersion for one game's current era.
    last_seen_* is draws-ago (0 = newest draw), None if never drawn.
    """
    draws: int
    main_counts: dict[int, int]
    special_counts: dict[int, int]
    main_cv: float
    special_cv: float
    era: EraConfig
    last_seen_main: dict[int, int | None] = field(default_factory=dict)
    last_seen_special: dict[int, int | None] = field(default_factory=dict)
    z_main: dict[int, float] = field(default_factory=dict)
    z_special: dict[int, float] = field(default_factory=dict)

    def counts_for(self, number_class: NumberClass) -> dict[int, int]:
        return self.main_counts if number_class == NumberClass.MAIN else self.special_counts

    def cv_for(self, number_class: NumberClass) -> float:
        return self.main_cv if number_class == NumberClass.MAIN else self.special_cv


@dataclass(frozen=True)
class DigitStats:
    draws: int
    k: int
    counts: dict[int, int]
    last_seen: dict[int, int | None]
    z: dict[int, float]
    cv: float


@dataclass(frozen=True)
class KOfNStats:
    draws: int
    k: int
    n: int
    counts: dict[int, int]
    last_seen: dict[int, int | None]
    z: dict[int, float]
    cv: float


@dataclass(frozen=True)
class WeightingRecommendation:
    mode: Mode
    alpha: float

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "alpha": self.alpha}


@dataclass(frozen=True)
class GameAnalysis:
    """stats + recommendation bundle returned by analyze_game."""
    game: str
    draws: int
    malformed: int
    cv_main: float
    cv_special: float
    recency_hot_frac_main: float
    recency_hot_frac_special: float
    rec_main: WeightingRecommendation
    rec_special: WeightingRecommendation
    era: EraConfig
    stats: FrequencyStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "game": self.game,
            "draws": self.draws,
            "malformed": self.malformed,
            "cv_main": self.cv_main,
            "cv_special": self.cv_special,
            "recency_hot_frac_main": self.recency_hot_frac_main,
            "recency_hot_frac_special": self.recency_hot_frac_special,
            "rec_main": self.rec_main.to_dict(),
            "rec_special": self.rec_special.to_dict(),
            "era_start": self.era.start.isoformat(),
            "era_label": self.era.label,
        }


# ── Generation ────────────────────────────────────────────────────

@dataclass(frozen=True)
class GenerateOptions:
    mode_main: Mode = Mode.HOT
    mode_special: Mode = Mode.HOT
    alpha_main: float = 0.0
    alpha_special: float = 0.0
    avoid_common: bool = False

    @classmethod
    def from_analysis(cls, analysis: GameAnalysis, avoid_common: bool = True) -> "GenerateOptions":
        return cls(
            mode_main=analysis.rec_main.mode,
            mode_special=analysis.rec_special.mode,
            alpha_main=analysis.rec_main.alpha,
            alpha_special=analysis.rec_special.alpha,
            avoid_common=avoid_common,
        )


@dataclass(frozen=True)
class GeneratedTicket:
    mains: tuple[int, ...]
    special: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "mains", tuple(self.mains))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"mains": list(self.mains)}
        if self.special is not None:
            out["special"] = self.special
        return out


# ── Pattern insights ──────────────────────────────────────────────

@dataclass(frozen=True)
class RecencyBin:
    """Values last seen between start and end draws ago (end None = open)."""
    start: int
    end: int | None
    count: int
    expected: float
    members: tuple[int, ...] = ()

    @property
    def label(self) -> str:
        if self.end is None:
            return f"{self.start}+"
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "start": self.start,
            "end": self.end,
            "count": self.count,
            "expected": self.expected,
            "members": list(self.members),
        }


@dataclass(frozen=True)
class ComboBucket:
    key: str
    mains: tuple[int, ...]
    count: int
    dates: tuple[date, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "mains": list(self.mains),
            "count": self.count,
            "dates": [d.isoformat() for d in self.dates],
        }


@dataclass(frozen=True)
class ComboBuckets:
    buckets: list[ComboBucket]
    total_combos: int | None
    distinct_seen: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "buckets": [b.to_dict() for b in self.buckets],
            "total_combos": self.total_combos,
            "distinct_seen": self.distinct_seen,
        }


@dataclass(frozen=True)
class DecadeSegment:
    start: int
    end: int
    hits: int
    expected: float
    ratio: float

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "hits": self.hits, "expected": self.expected, "ratio": self.ratio}


@dataclass(frozen=True)
class SpecialCycle:
    n: int
    last_gap: int
    avg_gap: float
    seen: int

    def to_dict(self) -> dict[str, Any]:
        return {"n": self.n, "last_gap": self.last_gap, "avg_gap": self.avg_gap, "seen": self.seen}
