# Main FastAPI application
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from courtside.api import games, health, live, manual_players, roster, stats
from courtside.core.config import settings
from courtside.core.errors import CourtsideError
from courtside.db.base import Base
from courtside.db.session import engine
from courtside.services.broadcaster import InMemoryBroadcaster
import courtside.models  # noqa: F401  registers every table on Base.metadata
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(broadcaster=None) -> FastAPI:
    app = FastAPI(title="Courtside Game Tracker API")
    app.state.broadcaster = broadcaster or InMemoryBroadcaster()

    app.include_router(health.router)
    app.include_router(games.router, prefix="/games", tags=["Games"])
    app.include_router(roster.router, prefix="/games", tags=["Roster"])
    app.include_router(stats.router, prefix="/games", tags=["Stats"])
    app.include_router(live.router, prefix="/games", tags=["Live"])
    app.include_router(
        manual_players.router, prefix="/manual-players", tags=["Manual Players"]
    )

    @app.exception_handler(CourtsideError)
    async def courtside_error(request: Request, exc: CourtsideError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.reason}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.on_event("startup")
    async def startup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @app.get("/")
    def root():
        return {"message": "Courtside API running"}

    return app


app = create_app()
