from dataclasses import dataclass
from typing import Optional
from pydantic import BaseModel

from players.models import PlayerProfile


@dataclass
class Identity:
    uid: str
    email: str
    display_name: str
    token: Optional[str] = None


class SignUpRequest(BaseModel):
    email: str
    password: str
    name: str


class SignInRequest(BaseModel):
    email: str
    password: str


class IdentityOut(BaseModel):
    uid: str
    email: str
    displayName: str
    token: Optional[str] = None


class SessionOut(BaseModel):
    identity: IdentityOut
    profile: Optional[PlayerProfile] = None
