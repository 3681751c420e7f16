"""Scoring engine: volleyball rules and the match state machine."""

from . import match_state, volleyball

__all__ = [
    "match_state",
    "volleyball",
]
