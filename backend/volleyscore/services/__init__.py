"""Application services: the scoring ledger and its concurrency guard."""

from .locks import MatchLocks, match_locks
from .matches import (
    UNSET,
    append_point,
    complete_match_manually,
    create_match,
    edit_point,
    get_match,
    get_points,
    get_sets,
    list_matches,
    set_point_attribution,
    set_point_note,
    set_point_scoring_team,
    set_wins,
    undo_last_point,
)

__all__ = [
    "MatchLocks",
    "match_locks",
    "UNSET",
    "append_point",
    "complete_match_manually",
    "create_match",
    "edit_point",
    "get_match",
    "get_points",
    "get_sets",
    "list_matches",
    "set_point_attribution",
    "set_point_note",
    "set_point_scoring_team",
    "set_wins",
    "undo_last_point",
]
