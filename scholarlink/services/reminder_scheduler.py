"""
Session Reminder Scheduler

Keeps the device's local reminders in step with the upcoming sessions.

Each sync recomputes the desired reminders from scratch and diffs them
against what was scheduled before:

1. Keep sessions that are accepted, not completed and still in the future.
2. For each lead time (24h, 1h) compute fire_date = session_date - lead,
   skipping fire dates that are already past.
3. Schedule desired ids that were not scheduled before, or that the platform
   no longer has pending (e.g. lost on restart).
4. Cancel previously scheduled ids that are no longer desired.
   While notifications are denied nothing is scheduled; the desired set is
   still persisted, and since those ids are not pending on the platform they
   are scheduled by the first sync after permission is granted.
5. Persist the desired set as the new "previously scheduled" set in one write.

Running sync twice with the same sessions issues no schedule or cancel
calls the second time.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List

from scholarlink.schemas.reminder import LeadTime, SessionReminder, reminder_identifier
from scholarlink.schemas.session import Session
from scholarlink.services.events import SessionsChanged
from scholarlink.services.local_notifications import AuthorizationStatus, LocalReminderScheduler
from scholarlink.stores.kv_store import KeyValueStore
from scholarlink.utils import remote_operation, utc_now

logger = logging.getLogger(__name__)

SCHEDULED_REMINDERS_KEY = "scheduled_session_reminders"


def reminder_content(reminder: SessionReminder) -> tuple:
    title = f"Upcoming {reminder.subject} session"
    body = f"{reminder.tutor_name} meets you in {reminder.lead_time_description.lower()}."
    return title, body


def desired_reminders(sessions: Iterable[Session], now: datetime) -> Dict[str, SessionReminder]:
    """Reminders that should be pending right now, keyed by reminder id"""
    desired: Dict[str, SessionReminder] = {}

    for session in sessions:
        if not (session.is_accepted and not session.is_completed and session.session_date > now):
            continue

        for lead in LeadTime:
            fire_date = session.session_date - timedelta(seconds=int(lead))
            if fire_date <= now:
                continue

            reminder_id = reminder_identifier(session.id, lead)
            desired[reminder_id] = SessionReminder(
                id=reminder_id,
                session_id=session.id,
                subject=session.subject,
                tutor_name=session.tutor_name,
                fire_date=fire_date,
                lead_time_description=lead.description,
            )

    return desired


class SessionReminderScheduler:
    def __init__(
        self,
        platform: LocalReminderScheduler,
        kv: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._platform = platform
        self._kv = kv
        self._clock = clock
        self._lock = asyncio.Lock()
        self.upcoming_reminders: List[SessionReminder] = []

    async def sync(self, sessions: Iterable[Session]) -> List[SessionReminder]:
        """Reconcile scheduled reminders with ``sessions``; returns the read model."""
        async with self._lock:
            desired = desired_reminders(sessions, self._clock())

            with remote_operation(logger, "read scheduled reminders", "Failed to update reminders. Please try again."):
                previous = set(await self._kv.get_json(SCHEDULED_REMINDERS_KEY) or [])
            pending = await self._platform.get_pending_ids()
            denied = await self._platform.authorization_status() == AuthorizationStatus.DENIED

            if denied:
                # Recorded as desired; scheduled by the first sync after permission is granted
                to_schedule = []
            else:
                to_schedule = [rid for rid in desired if rid not in previous or rid not in pending]
            stale = (previous | pending) - desired.keys()

            failed = set()
            for reminder_id in to_schedule:
                reminder = desired[reminder_id]
                title, body = reminder_content(reminder)
                try:
                    await self._platform.schedule(reminder_id, reminder.fire_date, title, body)
                except Exception as e:
                    # One reminder failing must not block the others
                    logger.warning(f"Failed to schedule reminder {reminder_id}: {e}")
                    failed.add(reminder_id)

            if stale:
                await self._platform.cancel(stale)

            # Failed ids stay out of the persisted set so the next sync retries them
            with remote_operation(logger, "save scheduled reminders", "Failed to update reminders. Please try again."):
                await self._kv.set_json(SCHEDULED_REMINDERS_KEY, sorted(set(desired) - failed))

            self.upcoming_reminders = sorted(desired.values(), key=lambda r: r.fire_date)

            if to_schedule or stale:
                logger.info(
                    f"Reminders synced: {len(to_schedule) - len(failed)} scheduled, "
                    f"{len(stale)} cancelled, {len(failed)} failed, {len(desired)} upcoming"
                )

            return list(self.upcoming_reminders)

    async def on_sessions_changed(self, event: SessionsChanged) -> None:
        await self.sync(event.sessions)

    async def clear(self) -> None:
        """Cancel everything this device scheduled (used on sign-out)."""
        await self.sync([])
