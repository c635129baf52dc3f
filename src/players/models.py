from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class PlayerStats(BaseModel):
    matchesPlayed: int = 0
    wins: int = 0
    losses: int = 0
    winRate: float = 0.0
    tournamentsWon: int = 0
    podiumFinishes: int = 0
    acesServed: int = 0
    longestWinStreak: int = 0
    currentWinStreak: int = 0


class PlayerProfile(BaseModel):
    id: str
    name: str
    email: str
    age: Optional[int] = None
    gender: Optional[str] = None
    avatarUrl: Optional[str] = None
    isAdmin: bool = False
    stats: PlayerStats
    createdAt: Optional[datetime] = None


class RankingEntry(BaseModel):
    position: int
    player: PlayerProfile


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None


def to_player_profile(p) -> PlayerProfile:
    return PlayerProfile(
        id=p.id, name=p.name, email=p.email,
        age=p.age, gender=p.gender, avatarUrl=p.avatar_url,
        isAdmin=bool(p.is_admin),
        stats=PlayerStats(
            matchesPlayed=p.matches_played, wins=p.wins, losses=p.losses,
            winRate=p.win_rate, tournamentsWon=p.tournaments_won,
            podiumFinishes=p.podium_finishes, acesServed=p.aces_served,
            longestWinStreak=p.longest_win_streak,
            currentWinStreak=p.current_win_streak,
        ),
        createdAt=p.created_at,
    )
