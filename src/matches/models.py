from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, field_validator

from common import to_datetime


class MatchCreateRequest(BaseModel):
    tournamentId: str
    category: str
    round: str
    team1: List[str]
    team2: List[str]
    date: datetime

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> datetime:
        return to_datetime(value)


class MatchResultRequest(BaseModel):
    score: str
    winner: List[str]
    aces: Optional[Dict[str, int]] = None


class MatchOut(BaseModel):
    id: str
    tournamentId: str
    category: str
    round: str
    team1: List[str]
    team2: List[str]
    date: datetime
    status: str
    score: Optional[str] = None
    winner: Optional[List[str]] = None
    aces: Optional[Dict[str, int]] = None


def to_match_out(m) -> MatchOut:
    return MatchOut(
        id=m.id, tournamentId=m.tournament_id,
        category=m.category, round=m.round,
        team1=list(m.team1), team2=list(m.team2),
        date=m.date, status=m.status,
        score=m.score,
        winner=list(m.winner) if m.winner else None,
        aces=dict(m.aces) if m.aces else None,
    )
