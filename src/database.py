from uuid import uuid4
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from asyncpg import Connection
from sqlalchemy import (
    JSON, Boolean, Column, ForeignKey, Integer, String, Float, Text,
    DateTime,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship

from config import DATABASE_URL


class Base(DeclarativeBase): pass


# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


def build_engine(url: str = DATABASE_URL, **kwargs):
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("postgresql+asyncpg"):
        connect_args = {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "connection_class": FixedConnection,
            **connect_args,
        }
    return create_async_engine(
        url,
        echo=False,
        future=True,
        connect_args=connect_args,
        **kwargs,
    )


def build_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


engine = build_engine()

# Фабрика сессий
AsyncSessionLocal = build_sessionmaker(engine)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables(bind=None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

#ORM

class AccountORM(Base):
    __tablename__ = "accounts"

    uid           = Column(String, primary_key=True)
    email         = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    display_name  = Column(String, nullable=False)
    created_at    = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class PlayerORM(Base):
    __tablename__ = "players"

    id                 = Column(String, primary_key=True)  # account uid
    name               = Column(String, nullable=False)
    email              = Column(String, nullable=False, index=True)
    age                = Column(Integer, nullable=True)
    gender             = Column(String, nullable=True)
    avatar_url         = Column(String, nullable=True)
    is_admin           = Column(Boolean, nullable=False, default=False)
    matches_played     = Column(Integer, nullable=False, default=0)
    wins               = Column(Integer, nullable=False, default=0)
    losses             = Column(Integer, nullable=False, default=0)
    win_rate           = Column(Float, nullable=False, default=0.0, index=True)
    tournaments_won    = Column(Integer, nullable=False, default=0)
    podium_finishes    = Column(Integer, nullable=False, default=0)
    aces_served        = Column(Integer, nullable=False, default=0)
    longest_win_streak = Column(Integer, nullable=False, default=0)
    current_win_streak = Column(Integer, nullable=False, default=0)
    created_at         = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    version            = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class TournamentORM(Base):
    __tablename__ = "tournaments"

    id           = Column(String, primary_key=True)
    name         = Column(String, nullable=False)
    description  = Column(Text, nullable=False, default="")
    location     = Column(String, nullable=False)
    start_date   = Column(DateTime(timezone=True), nullable=False)
    end_date     = Column(DateTime(timezone=True), nullable=False)
    status       = Column(String, nullable=False, default="upcoming")  # upcoming | active | completed | cancelled
    categories   = Column(JSONType, nullable=False, default=list)
    participants = Column(JSONType, nullable=False, default=list)  # list[str] -- player ids
    podium       = Column(JSONType, nullable=True)                 # {champion, runner_up, third_place}
    created_by   = Column(String, nullable=False)
    created_at   = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    version      = Column(Integer, nullable=False)

    matches = relationship(
        "MatchORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="MatchORM.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class MatchORM(Base):
    __tablename__ = "matches"

    id            = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    position      = Column(Integer, nullable=False, default=0)
    category      = Column(String, nullable=False)
    round         = Column(String, nullable=False)
    team1         = Column(JSONType, nullable=False)   # list[str] -- player ids
    team2         = Column(JSONType, nullable=False)
    date          = Column(DateTime(timezone=True), nullable=False)
    status        = Column(String, nullable=False, default="scheduled")  # scheduled | completed | cancelled
    score         = Column(String, nullable=True)
    winner        = Column(JSONType, nullable=True)
    aces          = Column(JSONType, nullable=True)    # {player id: aces}
    created_at    = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    version       = Column(Integer, nullable=False)

    tournament = relationship("TournamentORM", back_populates="matches")

    __mapper_args__ = {"version_id_col": version}
