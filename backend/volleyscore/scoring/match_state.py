"""Match state machine.

``transition`` maps a :class:`MatchState` and an event to the next state plus
the list of commands a storage layer has to execute to persist it. Nothing in
this module performs I/O, so every transition can be exercised with plain
values.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from .volleyball import (
    OUR,
    OPPONENT,
    MatchAlreadyCompleted,
    NothingToUndo,
    ScoringFormat,
    add_point,
    check_set_win,
    count_set_wins,
)

IN_PROGRESS = "in_progress"
COMPLETED = "completed"


@dataclass(frozen=True)
class SetState:
    number: int
    our: int = 0
    opponent: int = 0
    winner: Optional[str] = None

    @property
    def status(self) -> str:
        return COMPLETED if self.winner else IN_PROGRESS

    @property
    def point_count(self) -> int:
        # every point adds exactly one to one side
        return self.our + self.opponent


@dataclass(frozen=True)
class MatchState:
    fmt: ScoringFormat
    sets: Tuple[SetState, ...] = field(default_factory=lambda: (SetState(1),))
    current_set: int = 1
    status: str = IN_PROGRESS

    def set(self, number: int) -> SetState:
        for s in self.sets:
            if s.number == number:
                return s
        raise KeyError(f"set {number} not found")

    @property
    def current(self) -> SetState:
        return self.set(self.current_set)

    @property
    def set_wins(self) -> Tuple[int, int]:
        return count_set_wins(s.winner for s in self.sets)

    def with_set(self, updated: SetState) -> "MatchState":
        others = [s for s in self.sets if s.number != updated.number]
        ordered = sorted(others + [updated], key=lambda s: s.number)
        return replace(self, sets=tuple(ordered))

    def without_set(self, number: int) -> "MatchState":
        return replace(self, sets=tuple(s for s in self.sets if s.number != number))


# -- events -------------------------------------------------------------------


@dataclass(frozen=True)
class PointScored:
    team: str


@dataclass(frozen=True)
class PointUndone:
    """The last point of ``set_number`` was removed.

    ``our``/``opponent`` are the running totals after the new last point of
    that set (``0``/``0`` when the set is now empty).
    """

    set_number: int
    our: int
    opponent: int


@dataclass(frozen=True)
class SetRescored:
    set_number: int
    our: int
    opponent: int


@dataclass(frozen=True)
class CompletedManually:
    pass


Event = Union[PointScored, PointUndone, SetRescored, CompletedManually]


# -- commands -----------------------------------------------------------------


@dataclass(frozen=True)
class RecordPoint:
    set_number: int
    point_number: int
    scoring_team: str
    our_after: int
    opponent_after: int


@dataclass(frozen=True)
class DeleteLastPoint:
    set_number: int


@dataclass(frozen=True)
class SaveSet:
    set: SetState


@dataclass(frozen=True)
class DropSet:
    set_number: int


@dataclass(frozen=True)
class SaveMatch:
    our_score: int
    opponent_score: int
    current_set: int
    status: str


Command = Union[RecordPoint, DeleteLastPoint, SaveSet, DropSet, SaveMatch]


def _save_match(state: MatchState) -> SaveMatch:
    our, opponent = state.set_wins
    return SaveMatch(our, opponent, state.current_set, state.status)


def _settle(state: MatchState) -> Tuple[MatchState, List[Command]]:
    """Advance after the current set was won: next set or match completion."""

    our, opponent = state.set_wins
    needed = state.fmt.needed_wins
    if our >= needed or opponent >= needed:
        state = replace(state, status=COMPLETED)
        return state, [_save_match(state)]

    next_set = SetState(state.current_set + 1)
    state = replace(state.with_set(next_set), current_set=next_set.number)
    return state, [SaveSet(next_set), _save_match(state)]


def undo_target(state: MatchState) -> int:
    """Return the number of the set whose last point an undo removes."""

    current = state.current
    if current.point_count > 0:
        return current.number
    if current.number > 1:
        return current.number - 1
    raise NothingToUndo("no points to undo")


def _score_point(
    state: MatchState, event: PointScored
) -> Tuple[MatchState, List[Command]]:
    if state.status == COMPLETED:
        raise MatchAlreadyCompleted("match is completed")

    current = state.current
    our, opponent = add_point(current.our, current.opponent, event.team)
    winner = check_set_win(our, opponent, state.fmt.target_points(current.number))
    updated = replace(current, our=our, opponent=opponent, winner=winner)
    state = state.with_set(updated)
    commands: List[Command] = [
        RecordPoint(current.number, current.point_count + 1, event.team, our, opponent),
        SaveSet(updated),
    ]
    if winner:
        state, advance = _settle(state)
        commands.extend(advance)
    return state, commands


def _undo_point(
    state: MatchState, event: PointUndone
) -> Tuple[MatchState, List[Command]]:
    target = undo_target(state)
    if event.set_number != target:
        raise NothingToUndo(
            f"undo must target set {target}, not set {event.set_number}"
        )

    undone = state.set(target)
    if undone.point_count == 0:
        raise NothingToUndo("no points to undo")
    # a reassignment can carry a set past its winning score, so the remaining
    # points may still win it
    winner = check_set_win(event.our, event.opponent, state.fmt.target_points(target))
    restored = SetState(target, event.our, event.opponent, winner)
    commands: List[Command] = []

    if target != state.current_set:
        # the previous set completed and advanced; roll the advance back
        commands.append(DropSet(state.current_set))
        state = state.without_set(state.current_set)
        state = replace(state.with_set(restored), current_set=target, status=IN_PROGRESS)
        commands += [DeleteLastPoint(target), SaveSet(restored)]
        if winner:
            state, advance = _settle(state)
            return state, commands + advance
        return state, commands + [_save_match(state)]

    state = state.with_set(restored)
    commands += [DeleteLastPoint(target), SaveSet(restored)]
    if winner and state.status == IN_PROGRESS:
        state, advance = _settle(state)
        commands.extend(advance)
    elif winner:
        # the set that ended the match still stands
        commands.append(_save_match(state))
    elif undone.winner:
        # the removed point had ended the match
        state = replace(state, status=IN_PROGRESS)
        commands.append(_save_match(state))
    return state, commands


def _rescore_set(
    state: MatchState, event: SetRescored
) -> Tuple[MatchState, List[Command]]:
    previous = state.set(event.set_number)
    target_points = state.fmt.target_points(event.set_number)
    winner = check_set_win(event.our, event.opponent, target_points)
    updated = replace(previous, our=event.our, opponent=event.opponent, winner=winner)
    state = state.with_set(updated)
    commands: List[Command] = [SaveSet(updated)]

    if (
        winner
        and state.status == IN_PROGRESS
        and event.set_number == state.current_set
    ):
        state, advance = _settle(state)
        commands.extend(advance)
    else:
        # status and current set stay put, only the set-win counts move
        commands.append(_save_match(state))
    return state, commands


def _complete(
    state: MatchState, event: CompletedManually
) -> Tuple[MatchState, List[Command]]:
    state = replace(state, status=COMPLETED)
    return state, [_save_match(state)]


def transition(state: MatchState, event: Event) -> Tuple[MatchState, List[Command]]:
    """Apply ``event`` to ``state``.

    Raises :class:`MatchAlreadyCompleted` when a point is scored on a finished
    match and :class:`NothingToUndo` when an undo has nothing to remove.
    """

    if isinstance(event, PointScored):
        return _score_point(state, event)
    if isinstance(event, PointUndone):
        return _undo_point(state, event)
    if isinstance(event, SetRescored):
        return _rescore_set(state, event)
    if isinstance(event, CompletedManually):
        return _complete(state, event)
    raise TypeError(f"unsupported event: {event!r}")


__all__ = [
    "COMPLETED",
    "IN_PROGRESS",
    "OUR",
    "OPPONENT",
    "MatchState",
    "SetState",
    "PointScored",
    "PointUndone",
    "SetRescored",
    "CompletedManually",
    "RecordPoint",
    "DeleteLastPoint",
    "SaveSet",
    "DropSet",
    "SaveMatch",
    "transition",
    "undo_target",
]
