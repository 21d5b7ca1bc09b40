"""
smartpick/models/statistical/recommendation.py
Turn count dispersion (CV) into a hot/cold sampling mode and blend strength.

A more uneven history (higher CV) earns a stronger lean into it:
    alpha = clamp(alpha_floor + alpha_slope * cv, 0, alpha_cap), 2 d.p.
Very flat histories (cv <= cold_below) switch to cold; everything else is
hot. Alpha never decreases as CV grows, and the mode for a given CV is
fixed by the profile parameters alone.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Sequence

from smartpick.models.era import EraTable, filter_rows_for_current_era, validate_draw
from smartpick.models.statistical.frequency_analyzer import FrequencyAnalyzer
from smartpick.models.types import (
    DrawRecord,
    FrequencyStats,
    GameAnalysis,
    Mode,
    NumberClass,
    WeightingRecommendation,
)
from smartpick.utils.config import get_generator_settings, get_recommendation_params
from smartpick.utils.logger import get_logger

log = get_logger("stats.recommend")


def recommend_from_cv(
    cv: float,
    profile: str = "main",
    params: dict[str, float] | None = None,
) -> WeightingRecommendation:
    p = params or get_recommendation_params(profile)
    if math.isnan(cv) or cv < 0:
        cv = 0.0
    mode = Mode.COLD if cv <= p["cold_below"] else Mode.HOT
    alpha = min(p["alpha_cap"], p["alpha_floor"] + p["alpha_slope"] * cv)
    alpha = min(1.0, max(0.0, alpha))
    return WeightingRecommendation(mode=mode, alpha=round(alpha, 2))


def recommend(
    stats: FrequencyStats,
    number_class: NumberClass = NumberClass.MAIN,
    params: dict[str, float] | None = None,
) -> WeightingRecommendation:
    """Recommendation for one number class. Depends only on that class's CV."""
    return recommend_from_cv(stats.cv_for(number_class), number_class.value, params)


def damp_for_short_history(
    rec: WeightingRecommendation,
    draws: int,
    domain_size: int,
    profile: str,
) -> WeightingRecommendation:
    """
    Before roughly one full domain of draws, lower the alpha ceiling so a
    handful of early draws cannot produce a spiky distribution.
    """
    if draws >= domain_size:
        return rec
    params = get_recommendation_params(profile)
    damping = get_generator_settings()["short_history_damping"]
    ceiling = round(max(0.0, params["alpha_cap"] - damping), 2)
    if rec.alpha <= ceiling:
        return rec
    return WeightingRecommendation(mode=rec.mode, alpha=ceiling)


def analyze_game(
    records: Sequence[DrawRecord],
    game: str,
    as_of: date | None = None,
    table: EraTable | None = None,
) -> GameAnalysis:
    """Era filter + frequency stats + per-class recommendation in one call."""
    window = get_generator_settings()["recency_window"]
    analyzer = FrequencyAnalyzer(game, as_of=as_of, table=table, recency_window=window)
    era = analyzer.era
    filtered = filter_rows_for_current_era(records, game, as_of=as_of, table=table)
    malformed = sum(1 for r in filtered if not validate_draw(r, era))
    if malformed:
        log.warning(f"{game}: {malformed}/{len(filtered)} draws are malformed; bad values are skipped")

    stats = analyzer.get_stats(filtered)
    recency_main, recency_special = analyzer.get_recency(stats)

    rec_main = damp_for_short_history(
        recommend(stats, NumberClass.MAIN), stats.draws, era.domain_size, NumberClass.MAIN.value
    )
    if era.has_special:
        rec_special = damp_for_short_history(
            recommend(stats, NumberClass.SPECIAL), stats.draws, era.special_max, NumberClass.SPECIAL.value
        )
    else:
        rec_special = WeightingRecommendation(mode=Mode.HOT, alpha=0.0)

    analysis = GameAnalysis(
        game=game,
        draws=stats.draws,
        malformed=malformed,
        cv_main=stats.main_cv,
        cv_special=stats.special_cv,
        recency_hot_frac_main=recency_main,
        recency_hot_frac_special=recency_special,
        rec_main=rec_main,
        rec_special=rec_special,
        era=era,
        stats=stats,
    )
    log.info(
        f"{game}: {stats.draws} draws since {era.start} | "
        f"main cv={stats.main_cv:.3f} → {rec_main.mode.value}/{rec_main.alpha:.2f}"
    )
    return analysis
