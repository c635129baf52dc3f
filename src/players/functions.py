import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from common import is_final, is_third_place
from config import MAX_AVATAR_BYTES, RANKING_LIMIT
from database import PlayerORM
from errors import InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)


def calculate_win_rate(wins: int, matches_played: int) -> float:
    if matches_played <= 0:
        return 0.0
    return wins / matches_played * 100


def update_player_stats(player_orm: PlayerORM, won: bool, aces: int = 0):
    """Apply one finished match to a player's counters and streaks."""
    player_orm.matches_played += 1
    if won:
        player_orm.wins += 1
        player_orm.current_win_streak += 1
    else:
        player_orm.losses += 1
        player_orm.current_win_streak = 0
    player_orm.longest_win_streak = max(player_orm.longest_win_streak, player_orm.current_win_streak)
    player_orm.win_rate = calculate_win_rate(player_orm.wins, player_orm.matches_played)
    if aces > 0:
        player_orm.aces_served += aces


def award_podium(player_orm: PlayerORM, round_name: str, won: bool):
    # final: both teams reach the podium, winners take the title
    # third place: only the winners reach the podium
    if is_final(round_name):
        player_orm.podium_finishes += 1
        if won:
            player_orm.tournaments_won += 1
    elif is_third_place(round_name) and won:
        player_orm.podium_finishes += 1


async def create_player_profile(
    session: AsyncSession,
    uid: str, email: str, name: str,
    is_admin: bool = False,
) -> PlayerORM:
    player = PlayerORM(
        id=uid, email=email.strip().lower(), name=name.strip(), is_admin=is_admin,
        age=None, gender=None, avatar_url=None,
        matches_played=0, wins=0, losses=0, win_rate=0.0,
        tournaments_won=0, podium_finishes=0, aces_served=0,
        longest_win_streak=0, current_win_streak=0,
    )
    session.add(player)
    await session.flush()
    return player


async def get_player_profile(session: AsyncSession, player_id: str) -> PlayerORM:
    player = await session.get(PlayerORM, player_id)
    if not player:
        raise NotFoundError(f"Player {player_id} not found")
    return player


async def find_player_by_email(session: AsyncSession, email: str) -> Optional[PlayerORM]:
    result = await session.execute(
        select(PlayerORM).where(PlayerORM.email == email.strip().lower())
    )
    return result.scalars().first()


async def list_players(session: AsyncSession) -> List[PlayerORM]:
    result = await session.execute(select(PlayerORM).order_by(PlayerORM.name))
    return list(result.scalars().all())


async def update_player_profile(
    session: AsyncSession,
    player_id: str,
    name: Optional[str] = None,
    age: Optional[int] = None,
    gender: Optional[str] = None,
) -> PlayerORM:
    player = await get_player_profile(session, player_id)
    if name is not None:
        if not name.strip():
            raise InvalidArgumentError("Player name cannot be blank")
        player.name = name.strip()
    if age is not None:
        if age <= 0:
            raise InvalidArgumentError(f"Invalid age {age}")
        player.age = age
    if gender is not None:
        player.gender = gender.strip() or None
    await session.flush()
    return player


async def upload_avatar(
    session: AsyncSession,
    blob_store,
    player_id: str,
    data: bytes,
    content_type: Optional[str],
) -> str:
    player = await get_player_profile(session, player_id)
    if not content_type or not content_type.startswith("image/"):
        raise InvalidArgumentError(f"Avatar must be an image, got {content_type!r}")
    if len(data) > MAX_AVATAR_BYTES:
        raise InvalidArgumentError(f"Avatar too large: {len(data)} bytes")

    url = await blob_store.upload(f"avatars/{player_id}", data, content_type)
    player.avatar_url = url
    await session.flush()
    return url


# Ranking

async def _ranked_players(session: AsyncSession, limit: int) -> List[PlayerORM]:
    result = await session.execute(
        select(PlayerORM)
        .where(PlayerORM.is_admin.is_(False))
        .order_by(PlayerORM.win_rate.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def _ranked_players_in_memory(session: AsyncSession, limit: int) -> List[PlayerORM]:
    result = await session.execute(select(PlayerORM))
    players = [p for p in result.scalars().all() if not p.is_admin]
    players.sort(key=lambda p: p.win_rate, reverse=True)
    return players[:limit]


async def get_ranking(
    session: AsyncSession,
    limit: int = RANKING_LIMIT,
    search: Optional[str] = None,
) -> List[PlayerORM]:
    """Leaderboard by win rate, administrators excluded.

    Falls back to sorting in memory when the ordered query fails, e.g. a
    missing index or an unsupported expression on the backing store.
    """
    if limit <= 0:
        raise InvalidArgumentError(f"Invalid ranking limit {limit}")

    try:
        players = await _ranked_players(session, limit)
    except SQLAlchemyError:
        logger.exception("Ranking query failed, falling back to in-memory sort")
        await session.rollback()
        players = await _ranked_players_in_memory(session, limit)

    if search and search.strip():
        term = search.strip().lower()
        players = [p for p in players if term in p.name.lower()]
    return players
