from typing import List, Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import get_blob_store, get_current_player, require_admin, require_owner
from config import RANKING_LIMIT
from database import get_session, PlayerORM
from players.functions import (
    get_player_profile, get_ranking, list_players, update_player_profile, upload_avatar,
)
from players.models import PlayerProfile, ProfileUpdateRequest, RankingEntry, to_player_profile
from tournaments.functions import list_player_tournaments
from tournaments.models import TournamentOut, to_tournament_out

router = APIRouter(prefix='/players', tags=['Jogadores'])


@router.get("/ranking", response_model=List[RankingEntry])
async def ranking(
    limit: int = Query(RANKING_LIMIT, ge=1, le=500),
    search: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    players = await get_ranking(session, limit, search)
    return [
        RankingEntry(position=i + 1, player=to_player_profile(p))
        for i, p in enumerate(players)
    ]


@router.get("/", response_model=List[PlayerProfile])
async def players_index(
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return [to_player_profile(p) for p in await list_players(session)]


@router.get("/{player_id}", response_model=PlayerProfile)
async def player_view(player_id: str, session: AsyncSession = Depends(get_session)):
    return to_player_profile(await get_player_profile(session, player_id))


@router.patch("/{player_id}", response_model=PlayerProfile)
async def player_update(
    player_id: str,
    payload: ProfileUpdateRequest,
    current: PlayerORM = Depends(get_current_player),
    session: AsyncSession = Depends(get_session),
):
    require_owner(current, player_id)
    player = await update_player_profile(
        session, player_id,
        name=payload.name, age=payload.age, gender=payload.gender,
    )
    await session.commit()
    return to_player_profile(player)


@router.post("/{player_id}/avatar", response_model=PlayerProfile)
async def player_avatar(
    player_id: str,
    file: UploadFile = File(...),
    current: PlayerORM = Depends(get_current_player),
    session: AsyncSession = Depends(get_session),
    blob_store=Depends(get_blob_store),
):
    require_owner(current, player_id)
    data = await file.read()
    await upload_avatar(session, blob_store, player_id, data, file.content_type)
    await session.commit()
    return to_player_profile(await get_player_profile(session, player_id))


@router.get("/{player_id}/tournaments", response_model=List[TournamentOut])
async def player_tournaments(player_id: str, session: AsyncSession = Depends(get_session)):
    await get_player_profile(session, player_id)
    return [to_tournament_out(t) for t in await list_player_tournaments(session, player_id)]
