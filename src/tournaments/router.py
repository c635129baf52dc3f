from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import get_current_player, require_admin
from database import get_session, PlayerORM
from errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from players.functions import find_player_by_email
from tournaments.functions import (
    create_tournament, get_tournament, list_tournaments,
    register_player, set_status, unregister_player,
)
from tournaments.models import (
    RegistrationRequest, StatusUpdateRequest, TournamentCreateRequest,
    TournamentOut, to_tournament_out,
)

router = APIRouter(prefix='/tournaments', tags=['Campeonatos'])


@router.get("/", response_model=List[TournamentOut])
async def tournaments_index(status: Optional[str] = None, session: AsyncSession = Depends(get_session)):
    return [to_tournament_out(t) for t in await list_tournaments(session, status)]


@router.post("/", response_model=TournamentOut, status_code=201)
async def tournament_create(
    payload: TournamentCreateRequest,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await create_tournament(
        session,
        name=payload.name,
        description=payload.description,
        location=payload.location,
        start_date=payload.startDate,
        end_date=payload.endDate,
        categories=payload.categories,
        created_by=admin.id,
    )
    await session.commit()
    return to_tournament_out(t_orm)


@router.get("/{tid}", response_model=TournamentOut)
async def tournament_view(tid: str, session: AsyncSession = Depends(get_session)):
    return to_tournament_out(await get_tournament(session, tid))


@router.put("/{tid}/status", response_model=TournamentOut)
async def tournament_status(
    tid: str,
    payload: StatusUpdateRequest,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await set_status(session, tid, payload.status)
    await session.commit()
    return to_tournament_out(t_orm)


@router.post("/{tid}/participants", response_model=TournamentOut)
async def tournament_register(
    tid: str,
    payload: RegistrationRequest,
    current: PlayerORM = Depends(get_current_player),
    session: AsyncSession = Depends(get_session),
):
    # admins add players by email, players register themselves
    player_id = payload.playerId
    if payload.email:
        player = await find_player_by_email(session, payload.email)
        if not player:
            raise NotFoundError(f"No player with email {payload.email}")
        player_id = player.id
    if not player_id:
        raise InvalidArgumentError("playerId or email is required")
    if player_id != current.id and not current.is_admin:
        raise UnauthorizedError(f"Player {current.id} cannot register {player_id}")

    t_orm = await register_player(session, tid, player_id)
    await session.commit()
    return to_tournament_out(t_orm)


@router.delete("/{tid}/participants/{player_id}", response_model=TournamentOut)
async def tournament_unregister(
    tid: str,
    player_id: str,
    admin: PlayerORM = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await unregister_player(session, tid, player_id)
    await session.commit()
    return to_tournament_out(t_orm)
