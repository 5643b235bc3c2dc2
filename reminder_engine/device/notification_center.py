"""
Device-local notification center.

Notifications are APScheduler `date` jobs; when one fires its content is
handed to a presenter (the Telegram chat bound to this device). Categories
registered here play the role of the OS category registry.
"""
import uuid
import logging
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from apscheduler.jobstores.base import JobLookupError

from reminder_engine.config.constants import NOTIFICATION_JOB_PREFIX
from reminder_engine.schemas.notification import CategoryButton, NotificationContent, ScheduledNotification
from reminder_engine.utils.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)


class NotificationCenter(Protocol):
    async def schedule_at(self, content: NotificationContent, fire_at: datetime) -> str: ...
    async def cancel(self, notification_id: str) -> None: ...
    async def list_scheduled(self) -> List[ScheduledNotification]: ...
    async def set_category(self, category_id: str, buttons: Sequence[CategoryButton]) -> None: ...
    async def dismiss(self, notification_id: str) -> None: ...


class Presenter(Protocol):
    async def present(self, notification_id: str, content: NotificationContent, buttons: Sequence[CategoryButton]) -> None: ...
    async def dismiss(self, notification_id: str) -> None: ...


# The center whose presenter receives fired notifications. Job callables
# must be importable by reference for persistent job stores, so they reach
# the center through this module instead of a bound method.
_active_center: Optional["SchedulerNotificationCenter"] = None


async def fire_notification(notification_id: str, content: dict, created_at: Optional[str] = None):
    """APScheduler job: deliver a notification whose time has come."""
    if _active_center is None:
        logger.warning(f"Notification {notification_id} fired with no active notification center")
        return
    await _active_center.deliver(notification_id, NotificationContent(**content))


class SchedulerNotificationCenter:
    def __init__(self, scheduler, presenter: Optional[Presenter] = None, jobstore: str = "default"):
        self.scheduler = scheduler
        self.presenter = presenter
        self.jobstore = jobstore
        self._categories: Dict[str, List[CategoryButton]] = {}

    def activate(self) -> "SchedulerNotificationCenter":
        global _active_center
        _active_center = self
        return self

    @staticmethod
    def _job_id(notification_id: str) -> str:
        return f"{NOTIFICATION_JOB_PREFIX}{notification_id}"

    async def schedule_at(self, content: NotificationContent, fire_at: datetime) -> str:
        notification_id = str(uuid.uuid4())
        self.scheduler.add_job(
            fire_notification,
            'date',
            run_date=fire_at,
            id=self._job_id(notification_id),
            kwargs={
                "notification_id": notification_id,
                "content": content.model_dump(mode="json"),
                "created_at": utcnow().isoformat(),
            },
            jobstore=self.jobstore,
            replace_existing=True,
        )
        logger.info(f"Scheduled notification {notification_id} for {fire_at}")
        return notification_id

    async def cancel(self, notification_id: str) -> None:
        try:
            self.scheduler.remove_job(self._job_id(notification_id), jobstore=self.jobstore)
            logger.info(f"Cancelled notification {notification_id}")
        except JobLookupError:
            logger.debug(f"Notification {notification_id} already gone")

    async def list_scheduled(self) -> List[ScheduledNotification]:
        scheduled = []
        for job in self.scheduler.get_jobs(jobstore=self.jobstore):
            if not job.id.startswith(NOTIFICATION_JOB_PREFIX):
                continue
            kwargs = job.kwargs or {}
            # Pending jobs (scheduler not started yet) have no next_run_time
            fire_at = getattr(job, "next_run_time", None) or getattr(job.trigger, "run_date", None)
            try:
                scheduled.append(ScheduledNotification(
                    notification_id=kwargs["notification_id"],
                    fire_at=fire_at,
                    created_at=as_utc(kwargs.get("created_at")) or fire_at,
                    content=NotificationContent(**kwargs["content"]),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable notification job {job.id}: {e}")
        return scheduled

    async def set_category(self, category_id: str, buttons: Sequence[CategoryButton]) -> None:
        self._categories[category_id] = list(buttons)

    def get_categories(self) -> Dict[str, List[CategoryButton]]:
        return dict(self._categories)

    async def dismiss(self, notification_id: str) -> None:
        await self.cancel(notification_id)
        if self.presenter:
            await self.presenter.dismiss(notification_id)

    async def deliver(self, notification_id: str, content: NotificationContent) -> None:
        buttons: List[CategoryButton] = []
        if content.category_id:
            buttons = self._categories.get(content.category_id, [])
            if not buttons:
                logger.warning(f"Category {content.category_id} not registered, delivering without buttons")
        if not self.presenter:
            logger.info(f"Notification {notification_id} fired: {content.title}")
            return
        try:
            await self.presenter.present(notification_id, content, buttons)
        except Exception:
            logger.exception(f"Failed to present notification {notification_id}")

    async def describe_state(self) -> dict:
        """Snapshot of registered categories and pending notifications."""
        now = utcnow()
        notifications = []
        for item in sorted(await self.list_scheduled(), key=lambda n: n.fire_at):
            fire_at = as_utc(item.fire_at)
            notifications.append({
                "notification_id": item.notification_id,
                "reminder_id": item.reminder_id,
                "title": item.content.title,
                "category_id": item.content.category_id,
                "fire_at": fire_at.isoformat() if fire_at else None,
                "overdue": bool(fire_at and fire_at <= now),
            })
        return {
            "categories": {
                category_id: [b.model_dump() for b in buttons]
                for category_id, buttons in self._categories.items()
            },
            "notifications": notifications,
        }
