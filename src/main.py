import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from auth.functions import AuthClient
from auth.router import router as auth_router
from config import LOG_LEVEL, MEDIA_DIR, MEDIA_URL
from database import create_tables
from errors import ConcurrentUpdateError, LeagueError, UnknownError
from matches.router import router as matches_router
from players.router import router as players_router
from storage import LocalBlobStore
from tournaments.router import router as tournaments_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _log_session_change(identity):
    if identity is None:
        logger.debug("Session closed")
    else:
        logger.debug("Session opened for %s", identity.uid)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield


def _error_response(exc: LeagueError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def create_app(lifespan=lifespan) -> FastAPI:
    app = FastAPI(title="Beach League", lifespan=lifespan)

    app.state.auth = AuthClient()
    app.state.auth.subscribe(_log_session_change)
    app.state.blob_store = LocalBlobStore(MEDIA_DIR, MEDIA_URL)

    MEDIA_DIR.mkdir(parents=True, exist_ok=True)
    app.mount(MEDIA_URL, StaticFiles(directory=MEDIA_DIR), name="media")

    app.include_router(auth_router)
    app.include_router(players_router)
    app.include_router(tournaments_router)
    app.include_router(matches_router)

    @app.exception_handler(LeagueError)
    async def league_error_handler(request: Request, exc: LeagueError):
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
        return _error_response(exc)

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, exc: StaleDataError):
        logger.warning("Concurrent update on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(ConcurrentUpdateError(str(exc)))

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(UnknownError(str(exc)))

    @app.get("/")
    async def index():
        return {"message": "Beach League API"}

    return app


app = create_app()
