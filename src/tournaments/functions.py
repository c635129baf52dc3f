import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common import TOURNAMENT_STATUSES, generate_id, is_final, is_third_place, to_datetime
from config import DEFAULT_CATEGORIES
from database import MatchORM, PlayerORM, TournamentORM
from errors import (
    AlreadyRegisteredError, InvalidArgumentError, InvalidStateError,
    InvalidTransitionError, NotFoundError,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "upcoming":  {"active", "cancelled"},
    "active":    {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

TERMINAL_STATUSES = {"completed", "cancelled"}


def _clean_categories(categories: Optional[Iterable[str]]) -> List[str]:
    if categories is None:
        return list(DEFAULT_CATEGORIES)
    cleaned = []
    for category in categories:
        category = (category or "").strip()
        if category and category not in cleaned:
            cleaned.append(category)
    return cleaned


def _transition(tournament: TournamentORM, new_status: str):
    if new_status not in ALLOWED_TRANSITIONS[tournament.status]:
        raise InvalidTransitionError(
            f"Tournament {tournament.id}: {tournament.status} -> {new_status} not allowed"
        )
    logger.info("Tournament %s: %s -> %s", tournament.id, tournament.status, new_status)
    tournament.status = new_status


async def get_tournament(session: AsyncSession, tournament_id: str) -> TournamentORM:
    tournament = await session.get(TournamentORM, tournament_id)
    if not tournament:
        raise NotFoundError(f"Tournament {tournament_id} not found")
    return tournament


async def list_tournaments(session: AsyncSession, status: Optional[str] = None) -> List[TournamentORM]:
    query = select(TournamentORM).order_by(TournamentORM.start_date.asc())
    if status:
        if status not in TOURNAMENT_STATUSES:
            raise InvalidArgumentError(f"Unknown tournament status {status!r}")
        query = query.where(TournamentORM.status == status)
    result = await session.execute(query)
    return list(result.scalars().all())


async def list_player_tournaments(session: AsyncSession, player_id: str) -> List[TournamentORM]:
    # participants is a JSON list, filtered here to stay portable across dialects
    return [t for t in await list_tournaments(session) if player_id in (t.participants or [])]


async def create_tournament(
    session: AsyncSession,
    name: str,
    description: Optional[str],
    location: str,
    start_date,
    end_date,
    categories: Optional[Iterable[str]],
    created_by: str,
    now: Optional[datetime] = None,
) -> TournamentORM:
    name = (name or "").strip()
    location = (location or "").strip()
    if not name or not location:
        raise InvalidArgumentError("Tournament name and location are required")
    try:
        start = to_datetime(start_date)
        end = to_datetime(end_date if end_date is not None else start_date)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc
    if end < start:
        raise InvalidArgumentError(f"Tournament ends ({end}) before it starts ({start})")

    now = to_datetime(now or datetime.now(timezone.utc))
    t_orm = TournamentORM(
        id=generate_id(),
        name=name,
        description=(description or "").strip(),
        location=location,
        start_date=start,
        end_date=end,
        status="upcoming" if start > now else "active",
        categories=_clean_categories(categories),
        participants=[],
        matches=[],
        podium=None,
        created_by=created_by,
    )
    session.add(t_orm)
    await session.flush()
    logger.info("Created tournament %r (%s) as %s", name, t_orm.id, t_orm.status)
    return t_orm


async def set_status(session: AsyncSession, tournament_id: str, new_status: str) -> TournamentORM:
    if new_status not in TOURNAMENT_STATUSES:
        raise InvalidArgumentError(f"Unknown tournament status {new_status!r}")
    tournament = await get_tournament(session, tournament_id)
    _transition(tournament, new_status)
    await session.flush()
    return tournament


async def maybe_auto_complete(session: AsyncSession, tournament_id: str) -> bool:
    """Complete the tournament once both the final and the third-place match are done."""
    tournament = await get_tournament(session, tournament_id)
    if tournament.status in TERMINAL_STATUSES:
        return False

    result = await session.execute(
        select(MatchORM.round).where(
            MatchORM.tournament_id == tournament_id,
            MatchORM.status == "completed",
        )
    )
    rounds = list(result.scalars().all())
    if not (any(is_final(r) for r in rounds) and any(is_third_place(r) for r in rounds)):
        return False

    if tournament.status == "upcoming":
        _transition(tournament, "active")
    _transition(tournament, "completed")
    await session.flush()
    return True


async def register_player(session: AsyncSession, tournament_id: str, player_id: str) -> TournamentORM:
    tournament = await get_tournament(session, tournament_id)
    if not await session.get(PlayerORM, player_id):
        raise NotFoundError(f"Player {player_id} not found")
    if player_id in tournament.participants:
        raise AlreadyRegisteredError(f"Player {player_id} already registered in {tournament_id}")
    if tournament.status in TERMINAL_STATUSES:
        raise InvalidStateError(f"Tournament {tournament_id} is {tournament.status}")

    # reassign so the JSON column is flagged dirty
    tournament.participants = [*tournament.participants, player_id]
    await session.flush()
    logger.info("Registered player %s in tournament %s", player_id, tournament_id)
    return tournament


async def unregister_player(session: AsyncSession, tournament_id: str, player_id: str) -> TournamentORM:
    tournament = await get_tournament(session, tournament_id)
    if player_id not in tournament.participants:
        raise NotFoundError(f"Player {player_id} not registered in {tournament_id}")
    tournament.participants = [pid for pid in tournament.participants if pid != player_id]
    await session.flush()
    logger.info("Removed player %s from tournament %s", player_id, tournament_id)
    return tournament
