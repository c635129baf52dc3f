import logging
import secrets
from typing import Callable, Dict, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from auth.models import Identity
from common import generate_id
from database import AccountORM, PlayerORM
from errors import AlreadyRegisteredError, InvalidArgumentError, UnauthorizedError
from players.functions import create_player_profile

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

Listener = Callable[[Optional[Identity]], None]


class AuthClient:
    """Accounts, bearer-token sessions and a session-change stream.

    One instance lives for the whole process (``app.state.auth``). Listeners
    registered with :meth:`subscribe` receive the identity on sign-in and
    ``None`` on sign-out.
    """

    def __init__(self):
        self._sessions: Dict[str, Identity] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, identity: Optional[Identity]):
        for listener in list(self._listeners):
            listener(identity)

    async def create_account(
        self,
        session: AsyncSession,
        email: str, password: str, display_name: str,
    ) -> Identity:
        email = (email or "").strip().lower()
        display_name = (display_name or "").strip()
        if "@" not in email:
            raise InvalidArgumentError(f"Invalid email {email!r}")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidArgumentError("Password too short")
        if not display_name:
            raise InvalidArgumentError("Display name is required")

        existing = await session.execute(select(AccountORM).where(AccountORM.email == email))
        if existing.scalars().first():
            raise AlreadyRegisteredError(f"Email {email} already in use")

        account = AccountORM(
            uid=generate_id(), email=email, display_name=display_name,
            password_hash=generate_password_hash(password),
        )
        session.add(account)
        await session.flush()
        return Identity(uid=account.uid, email=email, display_name=display_name)

    async def sign_in(self, session: AsyncSession, email: str, password: str) -> Identity:
        email = (email or "").strip().lower()
        result = await session.execute(select(AccountORM).where(AccountORM.email == email))
        account = result.scalars().first()
        if not account or not check_password_hash(account.password_hash, password or ""):
            raise UnauthorizedError(f"Bad credentials for {email!r}")

        identity = Identity(
            uid=account.uid, email=account.email,
            display_name=account.display_name,
            token=secrets.token_urlsafe(32),
        )
        self._sessions[identity.token] = identity
        logger.info("Signed in %s", identity.uid)
        self._notify(identity)
        return identity

    def sign_out(self, token: str):
        identity = self._sessions.pop(token, None)
        if identity is None:
            return
        logger.info("Signed out %s", identity.uid)
        self._notify(None)

    def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        return self._sessions.get(token)


async def sign_up(
    session: AsyncSession,
    auth_client: AuthClient,
    email: str, password: str, name: str,
) -> Tuple[Identity, PlayerORM]:
    """Create the account and its zeroed player profile."""
    identity = await auth_client.create_account(session, email, password, name)
    profile = await create_player_profile(session, identity.uid, identity.email, identity.display_name)
    logger.info("New player %s (%s)", identity.uid, identity.email)
    return identity, profile
