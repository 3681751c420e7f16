"""Volleyball scoring rules.

Rally scoring with a win-by-2 requirement and no score cap. Non-deciding sets
are played to ``regular_set_points`` (25 by default) and the last possible set
of the format to ``final_set_points`` (15 by default). Matches are either a
single set or best-of-3/5/7.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

OUR = "our"
OPPONENT = "opponent"
TEAMS = (OUR, OPPONENT)

WIN_BY = 2

# set format -> set wins needed to take the match
NEEDED_SET_WINS = {1: 1, 3: 2, 5: 3, 7: 4}


class ScoringError(ValueError):
    """Base class for rule violations raised by the scoring engine."""


class InvalidFormat(ScoringError):
    pass


class InvalidTeam(ScoringError):
    pass


class MatchAlreadyCompleted(ScoringError):
    pass


class NothingToUndo(ScoringError):
    pass


def validate_team(team: str) -> str:
    if team not in TEAMS:
        raise InvalidTeam(f"invalid scoring team: {team!r}")
    return team


def needed_set_wins(set_format: int) -> int:
    """Return how many sets a side must win to take the match."""

    if isinstance(set_format, bool) or set_format not in NEEDED_SET_WINS:
        raise InvalidFormat(f"unsupported set format: {set_format!r}")
    return NEEDED_SET_WINS[set_format]


def is_final_set(set_number: int, set_format: int) -> bool:
    return set_number == set_format


def check_set_win(our: int, opponent: int, target_points: int) -> Optional[str]:
    """Return the set winner for the given score, or ``None`` while play continues."""

    if max(our, opponent) >= target_points and abs(our - opponent) >= WIN_BY:
        return OUR if our > opponent else OPPONENT
    return None


@dataclass(frozen=True)
class ScoringFormat:
    """Tournament format consumed by the engine."""

    set_format: int = 1
    regular_set_points: int = 25
    final_set_points: int = 15

    def __post_init__(self) -> None:
        needed_set_wins(self.set_format)
        for name in ("regular_set_points", "final_set_points"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidFormat(f"{name} must be a positive integer")

    @property
    def needed_wins(self) -> int:
        return needed_set_wins(self.set_format)

    def target_points(self, set_number: int) -> int:
        if is_final_set(set_number, self.set_format):
            return self.final_set_points
        return self.regular_set_points


def count_set_wins(winners: Iterable[Optional[str]]) -> Tuple[int, int]:
    """Count set wins for ``(our, opponent)`` from a sequence of set winners."""

    our = opponent = 0
    for winner in winners:
        if winner == OUR:
            our += 1
        elif winner == OPPONENT:
            opponent += 1
    return our, opponent


@dataclass(frozen=True)
class LedgerPoint:
    """A point as seen by the fold: who scored and the running score after it."""

    point_number: int
    scoring_team: str
    our_after: int
    opponent_after: int


def add_point(our: int, opponent: int, team: str) -> Tuple[int, int]:
    validate_team(team)
    if team == OUR:
        return our + 1, opponent
    return our, opponent + 1


def replay(
    teams: Sequence[str], *, start: Tuple[int, int] = (0, 0), first_number: int = 1
) -> List[LedgerPoint]:
    """Fold a sequence of scoring teams into ledger points with running totals."""

    our, opponent = start
    points: List[LedgerPoint] = []
    for offset, team in enumerate(teams):
        our, opponent = add_point(our, opponent, team)
        points.append(LedgerPoint(first_number + offset, team, our, opponent))
    return points


def reassign(
    points: Sequence[LedgerPoint], index: int, team: str
) -> List[LedgerPoint]:
    """Return the set's points with ``points[index]`` credited to ``team``.

    The edited point and every later point get their running totals
    re-derived from the score before the edited point. Later points keep their
    own scoring team. Points before ``index`` are returned untouched.
    """

    validate_team(team)
    if not 0 <= index < len(points):
        raise IndexError(f"point index {index} out of range")

    start = (0, 0)
    if index > 0:
        prior = points[index - 1]
        start = (prior.our_after, prior.opponent_after)

    teams = [team] + [p.scoring_team for p in points[index + 1 :]]
    rescored = replay(teams, start=start, first_number=points[index].point_number)
    # keep stored numbering even if the sequence has gaps
    rescored = [
        replace(new, point_number=old.point_number)
        for old, new in zip(points[index:], rescored)
    ]
    return list(points[:index]) + rescored


def final_score(points: Sequence[LedgerPoint]) -> Tuple[int, int]:
    if not points:
        return 0, 0
    last = points[-1]
    return last.our_after, last.opponent_after
