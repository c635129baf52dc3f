from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import require_admin
from database import get_session, PlayerORM
from matches.functions import cancel_match, create_match, get_match, list_matches, record_result
from matches.models import MatchCreateRequest, MatchOut, MatchResultRequest, to_match_out

router = APIRouter(prefix='/matches', tags=['Partidas'])


@router.get("/", response_model=List[MatchOut])
async def matches_index(
    tournament_id: str,
    category: Optional[str] = None,
    round: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    matches = await list_matches(session, tournament_id, category, round)
    return [to_match_out(m) for m in matches]


@router.post("/", response_model=MatchOut, status_code=201)
async def match_create(
    payload: MatchCreateRequest,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    match = await create_match(
        session, payload.tournamentId,
        payload.category, payload.round,
        payload.team1, payload.team2,
        payload.date,
    )
    await session.commit()
    return to_match_out(match)


@router.get("/{match_id}", response_model=MatchOut)
async def match_view(match_id: str, session: AsyncSession = Depends(get_session)):
    return to_match_out(await get_match(session, match_id))


@router.post("/{match_id}/result", response_model=MatchOut)
async def match_result(
    match_id: str,
    payload: MatchResultRequest,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    match = await record_result(session, match_id, payload.score, payload.winner, payload.aces)
    await session.commit()
    return to_match_out(match)


@router.post("/{match_id}/cancel", response_model=MatchOut)
async def match_cancel(
    match_id: str,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    match = await cancel_match(session, match_id)
    await session.commit()
    return to_match_out(match)
