"""
smartpick/models/errors.py
Exception hierarchy for the analytics engine.

Only configuration defects raise. Thin data (zero draws, empty scratcher
sets) and combinatorial exhaustion degrade to neutral results instead.
"""
from __future__ import annotations


class SmartPickError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(SmartPickError):
    """The static rule table or a config file is malformed."""


class UnknownGameError(ConfigurationError, KeyError):
    """A game identifier has no entry in the era rule table."""

    def __init__(self, game: str, detail: str = ""):
        self.game = game
        msg = f"Unknown game: {game}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class TaskCancelled(SmartPickError):
    """A worker-bridge call was cancelled before its reply was delivered."""
