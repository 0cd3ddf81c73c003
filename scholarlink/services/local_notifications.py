"""
Local Reminder Delivery

APScheduler-backed stand-in for the device's local notification center.
Each reminder is a one-shot DateTrigger job whose id is the reminder id, so
scheduling, cancelling and listing pending reminders map directly onto
scheduler jobs.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional, Set

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from scholarlink.errors import ReminderSchedulingError
from scholarlink.stores.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

AUTHORIZATION_KEY = "notification_authorization_status"


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"


async def _grant_by_default() -> bool:
    return True


class LocalReminderScheduler:
    """Schedules, cancels and lists one-shot local reminders."""

    def __init__(
        self,
        kv: KeyValueStore,
        scheduler: Optional[AsyncIOScheduler] = None,
        prompt: Callable[[], Awaitable[bool]] = _grant_by_default,
        on_deliver: Optional[Callable[[str, str, str], Awaitable[None]]] = None,
    ):
        self._kv = kv
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._prompt = prompt
        self._on_deliver = on_deliver

    def start(self):
        """Start the underlying scheduler; jobs added earlier become active"""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Local reminder scheduler started")

    def stop(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Local reminder scheduler stopped")

    async def authorization_status(self) -> AuthorizationStatus:
        value = await self._kv.get(AUTHORIZATION_KEY)
        return AuthorizationStatus(value) if value else AuthorizationStatus.NOT_DETERMINED

    async def request_authorization_if_needed(self) -> AuthorizationStatus:
        """
        Ask the user once per install whether reminders may be posted.

        A no-op once the user has granted or denied.
        """
        status = await self.authorization_status()
        if status != AuthorizationStatus.NOT_DETERMINED:
            return status

        granted = await self._prompt()
        status = AuthorizationStatus.GRANTED if granted else AuthorizationStatus.DENIED
        if not granted:
            logger.warning("Notification authorization denied by user")
        await self._kv.set(AUTHORIZATION_KEY, status.value)
        return status

    async def schedule(self, reminder_id: str, fire_at: datetime, title: str, body: str) -> None:
        """
        Schedule a reminder, replacing any pending reminder with the same id.

        Raises:
            ReminderSchedulingError: If notifications are denied or the job cannot be added
        """
        if await self.authorization_status() == AuthorizationStatus.DENIED:
            raise ReminderSchedulingError(
                "Notifications are turned off for this device",
                {"reminder_id": reminder_id},
            )

        try:
            self._scheduler.add_job(
                self._deliver,
                trigger=DateTrigger(run_date=fire_at),
                id=reminder_id,
                name=title,
                args=[reminder_id, title, body],
                replace_existing=True,
                misfire_grace_time=300,  # Still deliver if the device was briefly asleep
            )
        except Exception as e:
            raise ReminderSchedulingError(
                f"Could not schedule reminder: {e}",
                {"reminder_id": reminder_id},
            ) from e

        logger.debug(f"Scheduled reminder {reminder_id} at {fire_at.isoformat()}")

    async def cancel(self, reminder_ids: Iterable[str]) -> None:
        for reminder_id in reminder_ids:
            try:
                self._scheduler.remove_job(reminder_id)
            except JobLookupError:
                # Already fired or never scheduled on this run
                logger.debug(f"Reminder {reminder_id} was not pending")

    async def get_pending_ids(self) -> Set[str]:
        return {job.id for job in self._scheduler.get_jobs()}

    async def _deliver(self, reminder_id: str, title: str, body: str) -> None:
        logger.info(f"Delivering reminder {reminder_id}: {title} - {body}")
        if self._on_deliver is not None:
            await self._on_deliver(reminder_id, title, body)
