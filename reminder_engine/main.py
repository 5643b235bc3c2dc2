import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from reminder_engine.core.scheduler import notification_center, start_scheduler, shutdown_scheduler
from reminder_engine.bot.notifier import create_presenter
from reminder_engine.api.routes import router as notifications_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up FastAPI...")
    notification_center.presenter = create_presenter()
    await start_scheduler()
    yield
    await shutdown_scheduler()
    logger.info("Shutting down FastAPI...")


app = FastAPI(
    title="Reminder Notification Engine",
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(notifications_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
