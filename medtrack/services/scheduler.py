"""
Notification scheduling seam.

The platform notification service is an external collaborator: it accepts a
label and a time of day and hands back an opaque handle. The store persists
those handles inside reminders but never interprets them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import time
from typing import Protocol

import structlog

from medtrack.domain.models import Reminder, ReminderFrequency, TherapyReminder
from medtrack.services.result import Result

logger = structlog.get_logger(__name__)

DEFAULT_REMINDER_HOURS = (9, 13, 17)


class NotificationScheduler(Protocol):
    """Protocol for the platform notification service."""

    async def schedule(
        self, label: str, payload: str, hour: int, minute: int, repeats: bool
    ) -> str:
        """Schedule a notification and return its opaque handle."""
        ...

    async def cancel(self, handle: str) -> None: ...


@dataclass
class ScheduledNotification:
    handle: str
    label: str
    payload: str
    hour: int
    minute: int
    repeats: bool


@dataclass
class InMemoryNotificationScheduler:
    """Local scheduler that records notifications instead of firing them."""

    permission_granted: bool = True
    scheduled: dict[str, ScheduledNotification] = field(default_factory=dict)

    async def schedule(
        self, label: str, payload: str, hour: int, minute: int, repeats: bool
    ) -> str:
        if not self.permission_granted:
            raise PermissionError("Notification permission not granted")
        handle = str(uuid.uuid4())
        self.scheduled[handle] = ScheduledNotification(handle, label, payload, hour, minute, repeats)
        return handle

    async def cancel(self, handle: str) -> None:
        self.scheduled.pop(handle, None)


def default_times_for(times_per_day: int) -> list[time]:
    """Suggested reminder times for a new medication, at most three a day."""
    return [time(hour=h) for h in DEFAULT_REMINDER_HOURS[: max(0, min(times_per_day, 3))]]


def format_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


class ReminderService:
    """
    Schedules and releases reminders through an injected scheduler.

    Failures come back as Result errors so the caller can still save the
    owning entity without reminders.
    """

    def __init__(self, scheduler: NotificationScheduler) -> None:
        self.scheduler = scheduler
        self.logger = logger.bind(component="reminder_service")

    async def schedule_medication_reminders(
        self, medication_name: str, dosage_per_intake: int, times: list[time]
    ) -> Result[list[Reminder], Exception]:
        reminders: list[Reminder] = []
        unit = "pill" if dosage_per_intake == 1 else "pills"
        try:
            for t in times:
                body = (
                    f"Take {dosage_per_intake} {unit} - {medication_name} "
                    f"at {format_clock(t.hour, t.minute)}"
                )
                handle = await self.scheduler.schedule(
                    "Medication Reminder", body, t.hour, t.minute, True
                )
                reminders.append(Reminder(notification_id=handle, hour=t.hour, minute=t.minute))
        except Exception as e:
            self.logger.error(
                "reminder_schedule_failed", medication=medication_name, error=str(e)
            )
            # Roll back partial schedules so no orphaned notifications fire
            await self.cancel_many([r.notification_id for r in reminders])
            return Result.err(e)

        self.logger.info(
            "medication_reminders_scheduled", medication=medication_name, count=len(reminders)
        )
        return Result.ok(reminders)

    async def schedule_therapy_reminder(
        self,
        session_title: str,
        hour: int,
        minute: int,
        frequency: ReminderFrequency = ReminderFrequency.DAILY,
        custom_days: list[int] | None = None,
    ) -> Result[TherapyReminder, Exception]:
        try:
            handle = await self.scheduler.schedule(
                "Therapy Reminder",
                f"Time for {session_title} at {format_clock(hour, minute)}",
                hour,
                minute,
                frequency == ReminderFrequency.DAILY,
            )
        except Exception as e:
            self.logger.error("reminder_schedule_failed", session=session_title, error=str(e))
            return Result.err(e)

        return Result.ok(
            TherapyReminder(
                notification_id=handle,
                hour=hour,
                minute=minute,
                frequency=frequency,
                custom_days=custom_days,
            )
        )

    async def cancel_many(self, handles: list[str]) -> None:
        """Release every handle; a failed cancel is logged and skipped."""
        for handle in handles:
            try:
                await self.scheduler.cancel(handle)
            except Exception as e:
                self.logger.warning("reminder_cancel_failed", handle=handle, error=str(e))
