from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.redis import RedisJobStore
from apscheduler.jobstores.memory import MemoryJobStore
from reminder_engine.core.config import settings
from reminder_engine.config.constants import RESYNC_JOB_ID
from reminder_engine.device.notification_center import SchedulerNotificationCenter
import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def _redis_jobstore() -> RedisJobStore:
    # RedisJobStore initiates Redis(db=..., **kwargs), so split the URL up
    parsed_redis = urlparse(str(settings.REDIS_URL))
    redis_kwargs = {
        'host': parsed_redis.hostname or 'localhost',
        'port': parsed_redis.port or 6379,
        'password': parsed_redis.password,
    }

    db_val = 0
    if parsed_redis.path and parsed_redis.path != '/':
        try:
            db_val = int(parsed_redis.path.lstrip('/'))
        except ValueError:
            pass

    return RedisJobStore(
        jobs_key='reminder_engine:jobs',
        run_times_key='reminder_engine:run_times',
        db=db_val,
        **redis_kwargs
    )


if settings.NOTIFICATION_JOBSTORE == "redis":
    jobstores = {'default': _redis_jobstore()}
else:
    jobstores = {'default': MemoryJobStore()}

scheduler = AsyncIOScheduler(jobstores=jobstores, timezone="UTC")

# Local notifications of this device process
notification_center = SchedulerNotificationCenter(scheduler)


async def reconcile_device_job(user_id: str, device_id: str):
    """
    Run one reconciliation pass for a device.
    Used by the periodic resync and by API/bot triggers.
    """
    from reminder_engine.db.session import AsyncSessionLocal
    from reminder_engine.engine import ReminderEngine

    logger.info(f"Reconciliation job started for user {user_id} on device {device_id}")
    try:
        async with AsyncSessionLocal() as session:
            engine = ReminderEngine(
                session,
                notification_center,
                intents=notification_center.presenter,
                user_id=user_id,
                device_id=device_id,
            )
            await engine.reconcile()
    except Exception as e:
        logger.exception(f"Reconciliation job failed for user {user_id} on device {device_id}: {e}")


async def start_scheduler():
    """Start the scheduler."""
    if not scheduler.running:
        notification_center.activate()

        if settings.RESYNC_INTERVAL_MINUTES > 0 and settings.USER_ID:
            scheduler.add_job(
                reconcile_device_job,
                'interval',
                minutes=settings.RESYNC_INTERVAL_MINUTES,
                id=RESYNC_JOB_ID,
                kwargs={"user_id": settings.USER_ID, "device_id": settings.DEVICE_ID},
                replace_existing=True
            )

        scheduler.start()
        logger.info("APScheduler started.")

async def shutdown_scheduler():
    """Shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler shut down.")
