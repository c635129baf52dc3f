from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, field_validator

from common import to_datetime
from matches.models import MatchOut, to_match_out


class TournamentCreateRequest(BaseModel):
    name: str
    description: str = ""
    location: str
    startDate: datetime
    endDate: Optional[datetime] = None
    categories: Optional[List[str]] = None

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def _normalize_dates(cls, value: Any) -> Optional[datetime]:
        # accepts {seconds, nanoseconds} as well as ISO strings
        return None if value is None else to_datetime(value)


class StatusUpdateRequest(BaseModel):
    status: str


class RegistrationRequest(BaseModel):
    playerId: Optional[str] = None
    email: Optional[str] = None


class Podium(BaseModel):
    champion: List[str] = []
    runnerUp: List[str] = []
    thirdPlace: List[str] = []


class TournamentOut(BaseModel):
    id: str
    name: str
    description: str
    location: str
    startDate: datetime
    endDate: datetime
    status: str
    categories: List[str]
    participants: List[str]
    matches: List[MatchOut]
    podium: Optional[Podium] = None
    createdBy: str
    createdAt: Optional[datetime] = None


def to_tournament_out(t) -> TournamentOut:
    podium = None
    if t.podium:
        podium = Podium(
            champion=t.podium.get("champion", []),
            runnerUp=t.podium.get("runner_up", []),
            thirdPlace=t.podium.get("third_place", []),
        )
    return TournamentOut(
        id=t.id, name=t.name, description=t.description or "",
        location=t.location,
        startDate=t.start_date, endDate=t.end_date,
        status=t.status,
        categories=list(t.categories or []),
        participants=list(t.participants or []),
        matches=[to_match_out(m) for m in t.matches],
        podium=podium,
        createdBy=t.created_by,
        createdAt=t.created_at,
    )
