"""
smartpick/utils/config.py
Load env vars and the packaged JSON config files (era rule table, scoring).
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from smartpick.models.errors import ConfigurationError

load_dotenv()

PACKAGE_ROOT = Path(__file__).parent.parent
CONFIG_DIR = Path(os.getenv("SMARTPICK_CONFIG_DIR") or PACKAGE_ROOT / "config")

# ── Logging ───────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
SMARTPICK_LOG_DIR: str = os.getenv("SMARTPICK_LOG_DIR", "")

# ── Config files ──────────────────────────────────────────────────
CONFIG_FILES: dict[str, str] = {
    "eras": "eras.json",
    "scoring": "scoring.json",
}

RECOMMENDATION_PROFILES = ("main", "special", "digits", "k_of_n")

_config_cache: dict[str, Any] = {}


def get_config(name: str) -> dict[str, Any]:
    """Load and cache a JSON config file by its short name."""
    if name in _config_cache:
        return _config_cache[name]
    filename = CONFIG_FILES.get(name)
    if not filename:
        raise ValueError(f"Unknown config: {name}")
    path = CONFIG_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Malformed config {path}: {exc}") from exc
    _config_cache[name] = config
    return config


def clear_config_cache() -> None:
    """Forget loaded configs (tests point SMARTPICK_CONFIG_DIR elsewhere)."""
    _config_cache.clear()


def get_era_table() -> "EraTable":  # type: ignore[name-defined]
    """Return the packaged rule table as an immutable EraTable."""
    from smartpick.models.era import EraTable

    if "_era_table" not in _config_cache:
        raw = get_config("eras")
        _config_cache["_era_table"] = EraTable.from_mapping(raw.get("games", {}))
    return _config_cache["_era_table"]


def get_scoring_weights() -> dict[str, float]:
    """Default scratcher scoring weights {jackpot, prizes, odds, price}."""
    cfg = get_config("scoring")
    try:
        weights = cfg["scratchers"]["weights"]
        return {k: float(weights[k]) for k in ("jackpot", "prizes", "odds", "price")}
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Bad scratcher weights in scoring config: {exc}") from exc


def get_recommendation_params(profile: str) -> dict[str, float]:
    """CV thresholds and alpha curve for one recommendation profile."""
    if profile not in RECOMMENDATION_PROFILES:
        raise ValueError(f"Unknown recommendation profile: {profile}")
    cfg = get_config("scoring")
    try:
        params = cfg["recommendation"][profile]
        return {
            "cold_below": float(params["cold_below"]),
            "alpha_floor": float(params["alpha_floor"]),
            "alpha_slope": float(params["alpha_slope"]),
            "alpha_cap": float(params["alpha_cap"]),
        }
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Bad recommendation params for {profile}: {exc}") from exc


def get_generator_settings() -> dict[str, Any]:
    """Retry budgets and damping used by the ticket generator."""
    cfg = get_config("scoring")
    gen = cfg.get("generator", {})
    return {
        "pattern_attempts": int(gen.get("pattern_attempts", 200)),
        "attempts_per_ticket": int(gen.get("attempts_per_ticket", 50)),
        "short_history_damping": float(gen.get("short_history_damping", 0.10)),
        "recency_window": int(gen.get("recency_window", 10)),
    }
