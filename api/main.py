"""FastAPI application for the golf rounds and handicap API."""

import asyncio
import datetime as dt
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Config
from database.connection import db
from database.db_manager import DatabaseManager
from database.memory import InMemoryDatabase
from rounds import RoundGroupCoordinator

logger = logging.getLogger(__name__)


async def _reconcile_forever(coordinator: RoundGroupCoordinator, interval: int, ttl: int):
    """Periodically roll back group writes that never completed."""
    while True:
        await asyncio.sleep(interval)
        try:
            rolled_back = await coordinator.run_reconciliation(dt.timedelta(seconds=ttl))
            if rolled_back:
                logger.info("Pending-group sweep rolled back %d group(s)", rolled_back)
        except Exception:
            logger.exception("Pending-group sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup, close on shutdown."""
    config = app.state.config
    if config.STORAGE_BACKEND == "memory":
        database = InMemoryDatabase()
    else:
        await db.initialize(
            dsn=config.DATABASE_URL,
            min_size=config.DB_POOL_MIN_SIZE,
            max_size=config.DB_POOL_MAX_SIZE,
        )
        database = DatabaseManager(db.pool)
        await database.initialize_schema()

    coordinator = RoundGroupCoordinator.from_database(database)
    app.state.db_manager = database
    app.state.coordinator = coordinator
    app.state.handicaps = coordinator.handicaps

    sweeper = None
    if config.RECONCILE_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(_reconcile_forever(
            coordinator, config.RECONCILE_INTERVAL_SECONDS, config.PENDING_GROUP_TTL_SECONDS,
        ))
    logger.info("API started with %s storage", config.STORAGE_BACKEND)
    yield

    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await db.close()


def create_app(config=Config) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="Golf Rounds API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.routers import courses, users, rounds
    app.include_router(courses.router, prefix="/api/courses", tags=["courses"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(rounds.router, prefix="/api/rounds", tags=["rounds"])

    @app.get("/api/health")
    async def health():
        if config.STORAGE_BACKEND == "memory":
            return {"status": "ok", "database": "memory"}
        healthy = await db.health_check()
        return {"status": "ok" if healthy else "degraded", "database": healthy}

    return app


app = create_app()
