import logging
from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from common import generate_id, is_final, is_third_place, to_datetime
from database import MatchORM, PlayerORM, TournamentORM
from errors import InvalidArgumentError, InvalidStateError, NotFoundError
from players.functions import award_podium, update_player_stats
from tournaments.functions import TERMINAL_STATUSES, get_tournament, maybe_auto_complete

logger = logging.getLogger(__name__)


def _clean_team(team: Sequence[str], label: str) -> List[str]:
    members = [str(pid).strip() for pid in team or [] if str(pid).strip()]
    if not members:
        raise InvalidArgumentError(f"{label} has no players")
    if len(set(members)) != len(members):
        raise InvalidArgumentError(f"{label} lists a player twice")
    return members


def _split_teams(match: MatchORM, winning_team: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Return (winners, losers) as stored on the match."""
    wanted = set(winning_team or [])
    if wanted and wanted == set(match.team1):
        return list(match.team1), list(match.team2)
    if wanted and wanted == set(match.team2):
        return list(match.team2), list(match.team1)
    raise InvalidArgumentError(f"Winner {sorted(wanted)} is not a side of match {match.id}")


def _clean_aces(aces: Optional[Dict[str, int]], players: Sequence[str]) -> Dict[str, int]:
    cleaned = {}
    for pid, count in (aces or {}).items():
        if pid not in players or isinstance(count, bool) or not isinstance(count, int):
            continue
        if count > 0:
            cleaned[pid] = count
    return cleaned


def _has_round(tournament: TournamentORM, check) -> bool:
    return any(check(m.round) for m in tournament.matches)


async def get_match(session: AsyncSession, match_id: str) -> MatchORM:
    match = await session.get(MatchORM, match_id)
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    return match


async def list_matches(
    session: AsyncSession,
    tournament_id: str,
    category: Optional[str] = None,
    round_name: Optional[str] = None,
) -> List[MatchORM]:
    tournament = await get_tournament(session, tournament_id)
    return [
        m for m in tournament.matches
        if (not category or m.category == category)
        and (not round_name or m.round == round_name)
    ]


async def create_match(
    session: AsyncSession,
    tournament_id: str,
    category: str,
    round_name: str,
    team1: Sequence[str],
    team2: Sequence[str],
    date,
) -> MatchORM:
    tournament = await get_tournament(session, tournament_id)
    if tournament.status in TERMINAL_STATUSES:
        raise InvalidStateError(f"Tournament {tournament_id} is {tournament.status}")

    category = (category or "").strip()
    round_name = (round_name or "").strip()
    if not category or not round_name:
        raise InvalidArgumentError("Match category and round are required")
    team1 = _clean_team(team1, "team1")
    team2 = _clean_team(team2, "team2")
    if set(team1) & set(team2):
        raise InvalidArgumentError("A player cannot be on both teams")
    try:
        date = to_datetime(date)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc

    # one final and one third-place match per tournament
    if is_final(round_name) and _has_round(tournament, is_final):
        raise InvalidStateError(f"Tournament {tournament_id} already has a final")
    if is_third_place(round_name) and _has_round(tournament, is_third_place):
        raise InvalidStateError(f"Tournament {tournament_id} already has a third-place match")

    match = MatchORM(
        id=generate_id(),
        position=len(tournament.matches),
        category=category,
        round=round_name,
        team1=team1,
        team2=team2,
        date=date,
        status="scheduled",
        score=None,
        winner=None,
        aces=None,
    )
    tournament.matches.append(match)
    await session.flush()
    logger.info("Created %s match %s in tournament %s", round_name, match.id, tournament_id)
    return match


async def cancel_match(session: AsyncSession, match_id: str) -> MatchORM:
    match = await get_match(session, match_id)
    if match.status != "scheduled":
        raise InvalidStateError(f"Match {match_id} is {match.status}")
    match.status = "cancelled"
    await session.flush()
    logger.info("Cancelled match %s", match_id)
    return match


async def record_result(
    session: AsyncSession,
    match_id: str,
    score: str,
    winning_team: Sequence[str],
    aces: Optional[Dict[str, int]] = None,
) -> MatchORM:
    """Close a match and fan the outcome out to the tournament and its players.

    Steps run in order inside the caller's transaction: the match row, the
    tournament podium, every player's statistics, then the tournament
    auto-completion check. A player without a profile is skipped.
    """
    match = await get_match(session, match_id)
    if match.status != "scheduled":
        raise InvalidStateError(f"Match {match_id} is already {match.status}")
    score = (score or "").strip()
    if not score:
        raise InvalidArgumentError(f"Empty score for match {match_id}")
    winners, losers = _split_teams(match, winning_team)

    tournament = await get_tournament(session, match.tournament_id)
    if tournament.status == "cancelled":
        raise InvalidStateError(f"Tournament {tournament.id} is cancelled")
    aces = _clean_aces(aces, winners + losers)

    # Update match
    match.status = "completed"
    match.score = score
    match.winner = winners
    match.aces = aces or None

    # Update podium
    if is_final(match.round):
        tournament.podium = {**(tournament.podium or {}), "champion": winners, "runner_up": losers}
    elif is_third_place(match.round):
        tournament.podium = {**(tournament.podium or {}), "third_place": winners}
    await session.flush()

    # Update player stats
    for pid in winners + losers:
        player = await session.get(PlayerORM, pid)
        if player is None:
            logger.warning("Match %s: no profile for player %s, stats not updated", match_id, pid)
            continue
        won = pid in winners
        update_player_stats(player, won, aces.get(pid, 0))
        award_podium(player, match.round, won)
    await session.flush()

    logger.info("Recorded result %r for match %s, winners %s", score, match_id, winners)

    if is_final(match.round) or is_third_place(match.round):
        await maybe_auto_complete(session, tournament.id)
    return match
