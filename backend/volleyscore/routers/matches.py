# backend/volleyscore/routers/matches.py
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import SCORING_RATE_LIMIT
from ..db import get_session
from ..models import Match, MatchSet, Point
from ..rate_limit import limiter
from ..schemas import (
    MatchCreate,
    MatchOut,
    MatchSetOut,
    OkOut,
    PointIn,
    PointOut,
    PointUpdate,
)
from ..services import matches as scoring
from ..services.locks import match_locks
from ..time_utils import coerce_utc

# Resource-only prefix; versioning is added in main.py
router = APIRouter(prefix="/matches", tags=["matches"])


def _set_out(s: MatchSet) -> MatchSetOut:
    return MatchSetOut(
        id=s.id,
        setNumber=s.set_number,
        ourScore=s.our_score,
        opponentScore=s.opponent_score,
        status=s.status,
        winningTeam=s.winning_team,
    )


def _match_out(m: Match, sets: Sequence[MatchSet]) -> MatchOut:
    # set-win counts are derived from the sets, the stored columns are a cache
    our_sets, opponent_sets = scoring.set_wins(sets)
    return MatchOut(
        id=m.id,
        tournamentId=m.tournament_id,
        tournament=m.tournament_name,
        teamId=m.team_id,
        matchDate=m.match_date,
        matchTime=m.match_time,
        matchNumber=m.match_number,
        ourTeam=m.our_team,
        opponentTeam=m.opponent_team,
        ourScore=our_sets,
        opponentScore=opponent_sets,
        currentSet=m.current_set,
        status=m.status,
        sets=[_set_out(s) for s in sets],
        createdAt=coerce_utc(m.created_at),
    )


def _point_out(p: Point) -> PointOut:
    return PointOut(
        id=p.id,
        matchId=p.match_id,
        setNumber=p.set_number,
        pointNumber=p.point_number,
        scoringTeam=p.scoring_team,
        ourScoreAfter=p.our_score_after,
        opponentScoreAfter=p.opponent_score_after,
        scoringPlayerId=p.scoring_player_id,
        losingPlayerId=p.losing_player_id,
        note=p.note or "",
        createdAt=coerce_utc(p.created_at),
    )


async def _match_detail(session: AsyncSession, m: Match) -> MatchOut:
    return _match_out(m, await scoring.get_sets(session, m.id))


# GET /api/v0/matches
@router.get("", response_model=list[MatchOut])
async def list_matches(
    tournamentId: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
):
    rows = await scoring.list_matches(session, tournamentId)
    return [await _match_detail(session, m) for m in rows]


# POST /api/v0/matches
@router.post("", response_model=MatchOut)
async def create_match(
    body: MatchCreate,
    session: AsyncSession = Depends(get_session),
):
    m = await scoring.create_match(
        session,
        tournament_id=body.tournamentId,
        team_id=body.teamId,
        our_team=body.ourTeam,
        opponent_team=body.opponentTeam,
        match_date=body.matchDate,
        match_time=body.matchTime,
        match_number=body.matchNumber,
    )
    await session.commit()
    return await _match_detail(session, m)


# GET /api/v0/matches/{mid}
@router.get("/{mid}", response_model=MatchOut)
async def get_match(mid: str, session: AsyncSession = Depends(get_session)):
    m = await scoring.get_match(session, mid)
    return await _match_detail(session, m)


# POST /api/v0/matches/{mid}/complete
@router.post("/{mid}/complete", response_model=MatchOut)
@limiter.limit(SCORING_RATE_LIMIT)
async def complete_match(
    request: Request,
    mid: str,
    session: AsyncSession = Depends(get_session),
):
    async with match_locks.hold(mid):
        m = await scoring.complete_match_manually(session, mid)
        await session.commit()
    return await _match_detail(session, m)


# GET /api/v0/matches/{mid}/sets
@router.get("/{mid}/sets", response_model=list[MatchSetOut])
async def list_sets(mid: str, session: AsyncSession = Depends(get_session)):
    await scoring.get_match(session, mid)
    return [_set_out(s) for s in await scoring.get_sets(session, mid)]


# GET /api/v0/matches/{mid}/points
@router.get("/{mid}/points", response_model=list[PointOut])
async def list_points(
    mid: str,
    set_number: Optional[int] = Query(default=None, alias="set", ge=1),
    session: AsyncSession = Depends(get_session),
):
    await scoring.get_match(session, mid)
    points = await scoring.get_points(session, mid, set_number)
    return [_point_out(p) for p in points]


# POST /api/v0/matches/{mid}/points
@router.post("/{mid}/points", response_model=PointOut)
@limiter.limit(SCORING_RATE_LIMIT)
async def append_point(
    request: Request,
    mid: str,
    body: PointIn,
    session: AsyncSession = Depends(get_session),
):
    async with match_locks.hold(mid):
        point = await scoring.append_point(
            session,
            mid,
            body.scoringTeam,
            scoring_player_id=body.scoringPlayerId,
            losing_player_id=body.losingPlayerId,
            note=body.note,
        )
        await session.commit()
    return _point_out(point)


# PATCH /api/v0/matches/{mid}/points/{pid}
@router.patch("/{mid}/points/{pid}", response_model=PointOut)
@limiter.limit(SCORING_RATE_LIMIT)
async def update_point(
    request: Request,
    mid: str,
    pid: str,
    body: PointUpdate,
    session: AsyncSession = Depends(get_session),
):
    async with match_locks.hold(mid):
        point = await scoring.edit_point(session, mid, pid, body.changes())
        await session.commit()
    return _point_out(point)


# DELETE /api/v0/matches/{mid}/points/last
@router.delete("/{mid}/points/last", response_model=OkOut)
@limiter.limit(SCORING_RATE_LIMIT)
async def undo_last_point(
    request: Request,
    mid: str,
    session: AsyncSession = Depends(get_session),
):
    async with match_locks.hold(mid):
        await scoring.undo_last_point(session, mid)
        await session.commit()
    return OkOut()
