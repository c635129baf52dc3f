from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import get_auth_client, get_current_identity, get_token
from auth.functions import AuthClient, sign_up
from auth.models import Identity, IdentityOut, SessionOut, SignInRequest, SignUpRequest
from database import get_session, PlayerORM
from players.models import to_player_profile

router = APIRouter(prefix='/auth', tags=['Autenticação'])


def _identity_out(identity: Identity) -> IdentityOut:
    return IdentityOut(
        uid=identity.uid, email=identity.email,
        displayName=identity.display_name, token=identity.token,
    )


@router.post("/register", response_model=SessionOut, status_code=201)
async def register(
    payload: SignUpRequest,
    session: AsyncSession = Depends(get_session),
    auth_client: AuthClient = Depends(get_auth_client),
):
    identity, profile = await sign_up(session, auth_client, payload.email, payload.password, payload.name)
    await session.commit()
    return SessionOut(identity=_identity_out(identity), profile=to_player_profile(profile))


@router.post("/login", response_model=SessionOut)
async def login(
    payload: SignInRequest,
    session: AsyncSession = Depends(get_session),
    auth_client: AuthClient = Depends(get_auth_client),
):
    identity = await auth_client.sign_in(session, payload.email, payload.password)
    profile = await session.get(PlayerORM, identity.uid)
    return SessionOut(
        identity=_identity_out(identity),
        profile=to_player_profile(profile) if profile else None,
    )


@router.post("/logout", status_code=204)
async def logout(
    token: str = Depends(get_token),
    auth_client: AuthClient = Depends(get_auth_client),
):
    if token:
        auth_client.sign_out(token)


@router.get("/me", response_model=SessionOut)
async def me(
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session),
):
    profile = await session.get(PlayerORM, identity.uid)
    return SessionOut(
        identity=_identity_out(identity),
        profile=to_player_profile(profile) if profile else None,
    )
