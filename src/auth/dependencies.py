from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.functions import AuthClient
from auth.models import Identity
from database import get_session, PlayerORM
from errors import UnauthorizedError

bearer = HTTPBearer(auto_error=False)


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth


def get_blob_store(request: Request):
    return request.app.state.blob_store


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_identity(
    token: Optional[str] = Depends(get_token),
    auth_client: AuthClient = Depends(get_auth_client),
) -> Identity:
    identity = auth_client.current_identity(token)
    if identity is None:
        raise UnauthorizedError("Missing or expired session token")
    return identity


async def get_current_player(
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session),
) -> PlayerORM:
    player = await session.get(PlayerORM, identity.uid)
    if not player:
        raise UnauthorizedError(f"No player profile for {identity.uid}")
    return player


async def require_admin(player: PlayerORM = Depends(get_current_player)) -> PlayerORM:
    if not player.is_admin:
        raise UnauthorizedError(f"Player {player.id} is not an administrator")
    return player


def require_owner(player: PlayerORM, player_id: str):
    if player.id != player_id:
        raise UnauthorizedError(f"Player {player.id} cannot modify {player_id}")
