import asyncio
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request
from loguru import logger

from app.api.calendar_feed import router as calendar_feed_router
from app.api.schedules import router as schedules_router
from app.config.settings import settings
from app.core.logger import setup_logger
from app.db.models import Base
from app.db.session import get_engine
from app.schedules.models import WorkoutSchedule  # noqa: F401  registers tables on Base.metadata
from app.schedules.sweeper import missed_sweep_tick

setup_logger(level=settings.log_level)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables and start the missed-workout scheduler.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")

    scheduler: BackgroundScheduler | None = None
    if settings.missed_sweep_enabled:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            missed_sweep_tick,
            trigger=IntervalTrigger(minutes=settings.missed_sweep_interval_minutes),
            id="missed_workout_sweep",
            name="Missed Workout Sweeper",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(
            f"[SCHEDULER] Started missed-workout sweeper (runs every {settings.missed_sweep_interval_minutes} minutes)"
        )

        # Initial tick so stale rows are swept right after a restart
        missed_sweep_tick()
    else:
        logger.info("[SCHEDULER] Missed-workout sweeper disabled")

    await asyncio.sleep(0)
    yield

    if scheduler is not None:
        scheduler.shutdown()
        logger.info("[SCHEDULER] Stopped missed-workout sweeper")


app = FastAPI(title="Epic Fitness API", lifespan=lifespan)

app.include_router(schedules_router)
app.include_router(calendar_feed_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
