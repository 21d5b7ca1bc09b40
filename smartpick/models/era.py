"""
smartpick/models/era.py
Map a game to its current rule era and drop draws from earlier eras.

The rule table is an explicit immutable EraTable. Callers may inject one;
otherwise the packaged table from config/eras.json is used.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from numbers import Integral
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from smartpick.models.errors import ConfigurationError, UnknownGameError
from smartpick.models.types import DrawRecord, EraConfig, GameKind
from smartpick.utils.config import get_era_table
from smartpick.utils.logger import get_logger

log = get_logger("era")

R = TypeVar("R")

_REQUIRED_FIELDS = ("start", "label", "main_max", "main_pick")


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _parse_era(game: str, raw: Mapping[str, Any]) -> EraConfig:
    missing = [f for f in _REQUIRED_FIELDS if f not in raw]
    if missing:
        raise ConfigurationError(f"Era for {game} is missing fields: {missing}")
    try:
        era = EraConfig(
            start=date.fromisoformat(str(raw["start"])),
            label=str(raw["label"]),
            main_max=int(raw["main_max"]),
            main_pick=int(raw["main_pick"]),
            special_max=int(raw.get("special_max", 0)),
            special_label=raw.get("special_label"),
            description=str(raw.get("description", "")),
            kind=GameKind(raw.get("kind", GameKind.LOTTO.value)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed era for {game}: {exc}") from exc

    if era.main_pick < 1 or era.main_max < era.main_min:
        raise ConfigurationError(f"Era {era.label} for {game} has an empty main domain")
    if era.kind != GameKind.DIGITS and era.main_pick > era.domain_size:
        raise ConfigurationError(
            f"Era {era.label} for {game} picks {era.main_pick} from {era.domain_size} values"
        )
    if era.special_max < 0:
        raise ConfigurationError(f"Era {era.label} for {game} has negative special_max")
    return era


@dataclass(frozen=True)
class EraTable:
    """Versioned rule table: game -> eras sorted by start date."""
    eras: Mapping[str, tuple[EraConfig, ...]]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Iterable[Mapping[str, Any]]]) -> "EraTable":
        if not isinstance(raw, Mapping) or not raw:
            raise ConfigurationError("Era table must be a non-empty mapping of game -> eras")
        table: dict[str, tuple[EraConfig, ...]] = {}
        for game, entries in raw.items():
            parsed = sorted((_parse_era(game, e) for e in entries), key=lambda e: e.start)
            if not parsed:
                raise ConfigurationError(f"Game {game} has no eras")
            starts = [e.start for e in parsed]
            if len(set(starts)) != len(starts):
                raise ConfigurationError(f"Game {game} has two eras with the same start date")
            table[game] = tuple(parsed)
        return cls(eras=MappingProxyType(table))

    def games(self) -> list[str]:
        return sorted(self.eras)

    def history(self, game: str) -> tuple[EraConfig, ...]:
        try:
            return self.eras[game]
        except KeyError:
            raise UnknownGameError(game) from None

    def config_for(self, game: str, as_of: date | datetime) -> EraConfig:
        """Latest era whose start is on or before as_of."""
        history = self.history(game)
        day = _as_date(as_of)
        current = None
        for era in history:
            if era.start <= day:
                current = era
            else:
                break
        if current is None:
            # Before the first recorded era the oldest rules are the best we know.
            log.debug(f"{game}: {day} precedes first era {history[0].start}, using it")
            current = history[0]
        return current


def _resolve_table(table: EraTable | None) -> EraTable:
    return table if table is not None else get_era_table()


def known_games(table: EraTable | None = None) -> list[str]:
    return _resolve_table(table).games()


def era_config_for(
    game: str,
    as_of: date | datetime | None = None,
    table: EraTable | None = None,
) -> EraConfig:
    """
    Return the active EraConfig for a game.
    Unknown games raise UnknownGameError: the rule table is deployment
    configuration, so a miss is a programming error and is not recovered.
    """
    return _resolve_table(table).config_for(game, as_of or date.today())


def filter_rows_for_current_era(
    records: Sequence[R],
    game: str,
    as_of: date | datetime | None = None,
    table: EraTable | None = None,
) -> list[R]:
    """Keep records dated on/after the current era start. Order is preserved."""
    era = era_config_for(game, as_of=as_of, table=table)
    kept = [r for r in records if _as_date(r.date) >= era.start]  # type: ignore[attr-defined]
    if len(kept) != len(records):
        log.debug(f"{game}: dropped {len(records) - len(kept)} pre-era rows (era start {era.start})")
    return kept


def era_tooltip(
    game: str,
    as_of: date | datetime | None = None,
    table: EraTable | None = None,
) -> str:
    """Friendly multi-line description of the active era."""
    era = era_config_for(game, as_of=as_of, table=table)
    lines = [
        f"{game} (current era: {era.label})",
        f"Effective date: {era.start.isoformat()}",
    ]
    if era.description:
        lines.append(era.description)
    lines.append("Analyses and ticket generation use all draws since this date and ignore earlier eras.")
    return "\n".join(lines)


def validate_draw(record: DrawRecord, era: EraConfig) -> bool:
    """Check a draw against the era's rules before it reaches the engine."""
    mains = record.mains
    lo, hi = era.main_min, era.main_max

    if len(mains) != era.main_pick:
        log.debug(f"Expected {era.main_pick} numbers, got {len(mains)}: {mains}")
        return False
    if len(set(mains)) != len(mains):
        log.debug(f"Duplicate numbers: {mains}")
        return False
    if not all(isinstance(n, Integral) and lo <= n <= hi for n in mains):
        log.debug(f"Numbers out of range [{lo},{hi}]: {mains}")
        return False
    if era.has_special:
        sp = record.special
        if sp is None or not (1 <= sp <= era.special_max):
            log.debug(f"Special out of range [1,{era.special_max}]: {sp}")
            return False
    return True
