"""Point ledger, set tracker and correction engine.

Every public coroutine here reads the current rows, runs the pure state
machine from :mod:`volleyscore.scoring.match_state` and writes the resulting
commands back through the session. Functions only ``flush``; the caller owns
the transaction and commits once the whole operation has succeeded.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    DomainException,
    InvalidState,
    MatchNotFound,
    NothingToUndo,
    PointNotFound,
    SetNotFound,
    TournamentNotFound,
    ValidationFailed,
)
from ..models import Match, MatchSet, Point, Tournament
from ..scoring import volleyball
from ..scoring.match_state import (
    COMPLETED,
    IN_PROGRESS,
    Command,
    CompletedManually,
    DeleteLastPoint,
    DropSet,
    Event,
    MatchState,
    PointScored,
    PointUndone,
    RecordPoint,
    SaveMatch,
    SaveSet,
    SetRescored,
    SetState,
    transition,
    undo_target,
)
from ..scoring.volleyball import LedgerPoint, ScoringError, ScoringFormat

logger = logging.getLogger(__name__)

# marks an optional argument that was not supplied, as opposed to ``None``
UNSET: Any = object()

_EDITABLE_POINT_FIELDS = frozenset(
    {"note", "scoring_team", "scoring_player_id", "losing_player_id"}
)


def _domain_error(exc: ScoringError) -> DomainException:
    if isinstance(exc, volleyball.NothingToUndo):
        return NothingToUndo(str(exc))
    if isinstance(exc, volleyball.InvalidFormat):
        return InvalidState(str(exc), code="invalid_set_format")
    if isinstance(exc, volleyball.InvalidTeam):
        return InvalidState(str(exc), code="invalid_scoring_team")
    if isinstance(exc, volleyball.MatchAlreadyCompleted):
        return InvalidState(str(exc), code="match_completed")
    return InvalidState(str(exc))


def _checked_team(team: str) -> str:
    try:
        return volleyball.validate_team(team)
    except ScoringError as exc:
        raise _domain_error(exc) from exc


def scoring_format(tournament: Tournament) -> ScoringFormat:
    try:
        return ScoringFormat(
            set_format=tournament.set_format,
            regular_set_points=tournament.regular_set_points,
            final_set_points=tournament.final_set_points,
        )
    except ScoringError as exc:
        raise _domain_error(exc) from exc


# -- reads --------------------------------------------------------------------


async def get_match(session: AsyncSession, match_id: str) -> Match:
    match = await session.get(Match, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


async def list_matches(
    session: AsyncSession, tournament_id: Optional[str] = None
) -> Sequence[Match]:
    stmt = select(Match).order_by(Match.created_at, Match.id)
    if tournament_id is not None:
        stmt = stmt.where(Match.tournament_id == tournament_id)
    return (await session.execute(stmt)).scalars().all()


async def get_sets(session: AsyncSession, match_id: str) -> Sequence[MatchSet]:
    return (
        await session.execute(
            select(MatchSet)
            .where(MatchSet.match_id == match_id)
            .order_by(MatchSet.set_number)
        )
    ).scalars().all()


async def get_points(
    session: AsyncSession, match_id: str, set_number: Optional[int] = None
) -> Sequence[Point]:
    stmt = select(Point).where(Point.match_id == match_id)
    if set_number is not None:
        stmt = stmt.where(Point.set_number == set_number)
    stmt = stmt.order_by(Point.set_number, Point.point_number)
    return (await session.execute(stmt)).scalars().all()


def set_wins(sets: Iterable[MatchSet]) -> tuple[int, int]:
    """Derive ``(our, opponent)`` set-win counts from set rows."""

    return volleyball.count_set_wins(
        s.winning_team for s in sets if s.status == COMPLETED
    )


async def _get_tournament(session: AsyncSession, tournament_id: str) -> Tournament:
    tournament = await session.get(Tournament, tournament_id)
    if tournament is None:
        raise TournamentNotFound(tournament_id)
    return tournament


async def _get_point(session: AsyncSession, match_id: str, point_id: str) -> Point:
    point = await session.get(Point, point_id)
    if point is None or point.match_id != match_id:
        raise PointNotFound(point_id)
    return point


async def _get_set_row(
    session: AsyncSession, match_id: str, set_number: int
) -> Optional[MatchSet]:
    return (
        await session.execute(
            select(MatchSet).where(
                MatchSet.match_id == match_id, MatchSet.set_number == set_number
            )
        )
    ).scalar_one_or_none()


async def load_state(session: AsyncSession, match: Match) -> MatchState:
    """Build the state machine's view of ``match`` from its rows."""

    tournament = await _get_tournament(session, match.tournament_id)
    sets = await get_sets(session, match.id)
    return MatchState(
        fmt=scoring_format(tournament),
        sets=tuple(
            SetState(
                number=s.set_number,
                our=s.our_score,
                opponent=s.opponent_score,
                winner=s.winning_team if s.status == COMPLETED else None,
            )
            for s in sets
        ),
        current_set=match.current_set,
        status=match.status,
    )


# -- command execution ----------------------------------------------------------


async def _apply(
    session: AsyncSession,
    match: Match,
    commands: Sequence[Command],
    *,
    scoring_player_id: Optional[str] = None,
    losing_player_id: Optional[str] = None,
    note: Optional[str] = None,
) -> list[Point]:
    created: list[Point] = []
    for command in commands:
        if isinstance(command, RecordPoint):
            point = Point(
                id=uuid.uuid4().hex,
                match_id=match.id,
                set_number=command.set_number,
                point_number=command.point_number,
                scoring_team=command.scoring_team,
                our_score_after=command.our_after,
                opponent_score_after=command.opponent_after,
                scoring_player_id=scoring_player_id or None,
                losing_player_id=losing_player_id or None,
                note=note or "",
            )
            session.add(point)
            created.append(point)
        elif isinstance(command, DeleteLastPoint):
            remaining = await get_points(session, match.id, command.set_number)
            if not remaining:
                raise NothingToUndo()
            await session.delete(remaining[-1])
            await session.flush()
        elif isinstance(command, SaveSet):
            s = command.set
            row = await _get_set_row(session, match.id, s.number)
            if row is None:
                row = MatchSet(
                    id=uuid.uuid4().hex, match_id=match.id, set_number=s.number
                )
                session.add(row)
            row.our_score = s.our
            row.opponent_score = s.opponent
            row.status = s.status
            row.winning_team = s.winner
        elif isinstance(command, DropSet):
            row = await _get_set_row(session, match.id, command.set_number)
            if row is not None:
                await session.delete(row)
                await session.flush()
        elif isinstance(command, SaveMatch):
            match.our_score = command.our_score
            match.opponent_score = command.opponent_score
            match.current_set = command.current_set
            match.status = command.status
        else:
            raise TypeError(f"unsupported command: {command!r}")

    await session.flush()
    return created


async def _run(
    session: AsyncSession,
    match: Match,
    state: MatchState,
    event: Event,
    **point_fields: Any,
) -> tuple[MatchState, list[Point]]:
    try:
        new_state, commands = transition(state, event)
    except ScoringError as exc:
        raise _domain_error(exc) from exc
    except KeyError as exc:
        raise SetNotFound(match.id, getattr(event, "set_number", state.current_set)) from exc

    created = await _apply(session, match, commands, **point_fields)
    if new_state.status == COMPLETED and state.status != COMPLETED:
        logger.info(
            "Match %s completed %d-%d", match.id, *new_state.set_wins
        )
    elif new_state.current_set > state.current_set:
        logger.info(
            "Match %s advanced to set %d (sets %d-%d)",
            match.id,
            new_state.current_set,
            *new_state.set_wins,
        )
    return new_state, created


# -- operations -----------------------------------------------------------------


async def create_match(
    session: AsyncSession,
    *,
    tournament_id: str,
    our_team: str,
    opponent_team: str,
    match_date: str,
    match_time: str,
    match_number: str,
    team_id: Optional[str] = None,
) -> Match:
    """Create a match together with its first set."""

    tournament = await _get_tournament(session, tournament_id)
    fmt = scoring_format(tournament)

    our_team = (our_team or "").strip()
    opponent_team = (opponent_team or "").strip()
    if not our_team:
        raise ValidationFailed("our team name is required")
    if not opponent_team:
        raise ValidationFailed("opponent team name is required")

    match = Match(
        id=uuid.uuid4().hex,
        tournament_id=tournament.id,
        team_id=team_id,
        tournament_name=tournament.name,
        match_date=match_date,
        match_time=match_time,
        match_number=match_number,
        our_team=our_team,
        opponent_team=opponent_team,
        our_score=0,
        opponent_score=0,
        current_set=1,
        status=IN_PROGRESS,
    )
    session.add(match)
    await session.flush()

    state = MatchState(fmt=fmt)
    await _apply(session, match, [SaveSet(state.current)])
    return match


async def append_point(
    session: AsyncSession,
    match_id: str,
    scoring_team: str,
    *,
    scoring_player_id: Optional[str] = None,
    losing_player_id: Optional[str] = None,
    note: Optional[str] = None,
) -> Point:
    """Record a rally won by ``scoring_team`` in the match's current set."""

    scoring_team = _checked_team(scoring_team)
    match = await get_match(session, match_id)
    if match.status == COMPLETED:
        raise InvalidState("match is completed", code="match_completed")

    state = await load_state(session, match)
    _, created = await _run(
        session,
        match,
        state,
        PointScored(scoring_team),
        scoring_player_id=scoring_player_id,
        losing_player_id=losing_player_id,
        note=note,
    )
    return created[0]


async def undo_last_point(session: AsyncSession, match_id: str) -> None:
    """Remove the most recent point of the match.

    When the current set is still empty the previous set's completion is
    rolled back: the empty set is dropped and the previous set reopened. A set
    whose remaining points still win it stays completed and play moves on
    again.
    """

    match = await get_match(session, match_id)
    state = await load_state(session, match)
    try:
        target = undo_target(state)
    except ScoringError as exc:
        raise _domain_error(exc) from exc
    except KeyError as exc:
        raise SetNotFound(match.id, match.current_set) from exc

    points = await get_points(session, match.id, target)
    if not points:
        raise NothingToUndo()
    remaining = points[:-1]
    our, opponent = (
        (remaining[-1].our_score_after, remaining[-1].opponent_score_after)
        if remaining
        else (0, 0)
    )

    new_state, _ = await _run(
        session, match, state, PointUndone(target, our, opponent)
    )
    if new_state.current_set < state.current_set:
        logger.info(
            "Match %s: undo rolled set %d back into set %d",
            match.id,
            state.current_set,
            target,
        )


async def set_point_note(
    session: AsyncSession, match_id: str, point_id: str, note: str
) -> Point:
    await get_match(session, match_id)
    point = await _get_point(session, match_id, point_id)
    point.note = note or ""
    await session.flush()
    return point


async def set_point_attribution(
    session: AsyncSession,
    match_id: str,
    point_id: str,
    *,
    scoring_player_id: Optional[str] = UNSET,
    losing_player_id: Optional[str] = UNSET,
) -> Point:
    """Set or clear the players credited with a point. Scores are untouched."""

    await get_match(session, match_id)
    point = await _get_point(session, match_id, point_id)
    if scoring_player_id is not UNSET:
        point.scoring_player_id = scoring_player_id or None
    if losing_player_id is not UNSET:
        point.losing_player_id = losing_player_id or None
    await session.flush()
    return point


async def set_point_scoring_team(
    session: AsyncSession,
    match_id: str,
    point_id: str,
    scoring_team: str,
    *,
    note: Optional[str] = None,
) -> Point:
    """Credit an existing point to ``scoring_team`` and re-derive the set.

    Running totals of the edited point and every later point of the same set
    are recomputed, the set's score and winner are re-evaluated and the
    match's set-win counts recounted. A completed match is not reopened.
    """

    scoring_team = _checked_team(scoring_team)
    match = await get_match(session, match_id)
    point = await _get_point(session, match_id, point_id)

    if point.scoring_team == scoring_team:
        if note is not None:
            point.note = note
            await session.flush()
        return point

    set_points = list(await get_points(session, match.id, point.set_number))
    ledger = [
        LedgerPoint(
            p.point_number, p.scoring_team, p.our_score_after, p.opponent_score_after
        )
        for p in set_points
    ]
    index = next(i for i, p in enumerate(set_points) if p.id == point.id)
    rescored = volleyball.reassign(ledger, index, scoring_team)

    changed = 0
    for row, before, after in zip(set_points, ledger, rescored):
        if before == after:
            continue
        row.scoring_team = after.scoring_team
        row.our_score_after = after.our_after
        row.opponent_score_after = after.opponent_after
        changed += 1

    state = await load_state(session, match)
    our, opponent = volleyball.final_score(rescored)
    await _run(session, match, state, SetRescored(point.set_number, our, opponent))
    logger.info(
        "Match %s: point %s in set %d reassigned to %s (%d points rescored, set now %d-%d)",
        match.id,
        point.id,
        point.set_number,
        scoring_team,
        changed,
        our,
        opponent,
    )

    if note is not None:
        point.note = note
        await session.flush()
    return point


async def edit_point(
    session: AsyncSession, match_id: str, point_id: str, changes: Mapping[str, Any]
) -> Point:
    """Apply a partial point update.

    ``changes`` may hold ``note``, ``scoring_team``, ``scoring_player_id`` and
    ``losing_player_id``. Attribution is applied first, then a scoring-team
    reassignment (which also stores the note), then a plain note edit.
    """

    fields = {k: v for k, v in changes.items() if k in _EDITABLE_POINT_FIELDS}
    if not fields:
        raise ValidationFailed("no update fields provided")

    point: Optional[Point] = None
    if "scoring_player_id" in fields or "losing_player_id" in fields:
        point = await set_point_attribution(
            session,
            match_id,
            point_id,
            scoring_player_id=fields.get("scoring_player_id", UNSET),
            losing_player_id=fields.get("losing_player_id", UNSET),
        )

    note = fields.get("note")
    if fields.get("scoring_team") is not None:
        return await set_point_scoring_team(
            session, match_id, point_id, fields["scoring_team"], note=note
        )
    if note is not None:
        return await set_point_note(session, match_id, point_id, note)

    if point is None:
        await get_match(session, match_id)
        point = await _get_point(session, match_id, point_id)
    return point


async def complete_match_manually(session: AsyncSession, match_id: str) -> Match:
    """Mark a match completed regardless of set wins (forfeit, abandonment)."""

    match = await get_match(session, match_id)
    state = await load_state(session, match)
    await _run(session, match, state, CompletedManually())
    logger.info("Match %s marked completed manually", match.id)
    return match
