import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import TournamentNotFound
from ..models import Match, Tournament
from ..schemas import TournamentCreate, TournamentOut, TournamentUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

_FIELD_COLUMNS = {
    "name": "name",
    "setFormat": "set_format",
    "regularSetPoints": "regular_set_points",
    "finalSetPoints": "final_set_points",
}


def _tournament_out(t: Tournament) -> TournamentOut:
    return TournamentOut(
        id=t.id,
        name=t.name,
        setFormat=t.set_format,
        regularSetPoints=t.regular_set_points,
        finalSetPoints=t.final_set_points,
    )


@router.post("/tournaments", response_model=TournamentOut)
async def create_tournament(
    body: TournamentCreate,
    session: AsyncSession = Depends(get_session),
):
    t = Tournament(
        id=uuid.uuid4().hex,
        name=body.name,
        set_format=body.setFormat,
        regular_set_points=body.regularSetPoints,
        final_set_points=body.finalSetPoints,
    )
    session.add(t)
    await session.commit()
    return _tournament_out(t)


@router.get("/tournaments", response_model=list[TournamentOut])
async def list_tournaments(session: AsyncSession = Depends(get_session)):
    rows = (
        await session.execute(select(Tournament).order_by(Tournament.created_at))
    ).scalars().all()
    return [_tournament_out(t) for t in rows]


@router.get("/tournaments/{tournament_id}", response_model=TournamentOut)
async def get_tournament(
    tournament_id: str, session: AsyncSession = Depends(get_session)
):
    t = await session.get(Tournament, tournament_id)
    if not t:
        raise TournamentNotFound(tournament_id)
    return _tournament_out(t)


@router.patch("/tournaments/{tournament_id}", response_model=TournamentOut)
async def update_tournament(
    tournament_id: str,
    body: TournamentUpdate,
    session: AsyncSession = Depends(get_session),
):
    tournament = await session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)

    payload = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if not payload:
        return _tournament_out(tournament)

    format_changed = any(key != "name" for key in payload)
    for key, value in payload.items():
        setattr(tournament, _FIELD_COLUMNS[key], value)
    if "name" in payload:
        # matches cache the tournament name
        matches = (
            await session.execute(
                select(Match).where(Match.tournament_id == tournament_id)
            )
        ).scalars().all()
        for m in matches:
            m.tournament_name = payload["name"]
    await session.commit()

    if format_changed:
        logger.warning(
            "Tournament %s format changed; existing sets keep their recorded results",
            tournament_id,
        )
    return _tournament_out(tournament)
