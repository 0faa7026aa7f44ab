"""
Reminder schedule engine.

Turns a prescription's medicine entries (duration in days x daily HH:mm
times) into concrete reminder instants. Everything here is pure: no session,
no writes. Callers persist the drafts inside their own transaction.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

from config import DEFAULT_SCHEDULE_TIME, MAX_DURATION_DAYS

_SCHEDULE_TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")


class ScheduleValidationError(ValueError):
    """A schedule time (or the schedule list itself) is malformed."""

    def __init__(self, medicine_id, value, message: str | None = None):
        self.medicine_id = medicine_id
        self.value = value
        super().__init__(
            message or f"Invalid schedule time {value!r} for medicine {medicine_id}. Expected HH:mm (24-hour)"
        )


@dataclass(frozen=True)
class MedicineSchedule:
    prescription_medicine_id: int
    duration_days: int | None
    schedule_times: Sequence[str] = field(default_factory=list)

    @classmethod
    def from_entry(cls, entry) -> "MedicineSchedule":
        return cls(
            prescription_medicine_id=entry.id,
            duration_days=entry.duration_days,
            schedule_times=list(entry.schedule_times or []),
        )


@dataclass(frozen=True)
class ReminderDraft:
    prescription_medicine_id: int
    reminder_time: datetime
    sent: bool = False
    acknowledged: bool = False

    def as_row(self) -> dict:
        return {
            "prescription_medicine_id": self.prescription_medicine_id,
            "reminder_time": self.reminder_time,
            "sent": self.sent,
            "acknowledged": self.acknowledged,
        }


def is_valid_schedule_time(value) -> bool:
    return isinstance(value, str) and _SCHEDULE_TIME_PATTERN.fullmatch(value) is not None


def effective_schedule_times(times: Iterable[str] | None) -> list[str]:
    times = list(times or [])
    return times or [DEFAULT_SCHEDULE_TIME]


def effective_duration_days(duration_days: int | None) -> int:
    # Unset, zero and negative durations all mean a single day.
    if duration_days is None or duration_days < 1:
        return 1
    return int(duration_days)


def validate_duration_days(medicine_id, duration_days) -> int:
    days = effective_duration_days(duration_days)
    if days > MAX_DURATION_DAYS:
        raise ScheduleValidationError(
            medicine_id,
            duration_days,
            f"durationDays for medicine {medicine_id} must be at most {MAX_DURATION_DAYS}",
        )
    return days


def validate_schedule_times(medicine_id, times) -> list[str]:
    if not isinstance(times, (list, tuple)):
        raise ScheduleValidationError(
            medicine_id, times, f"scheduleTimes for medicine {medicine_id} must be an array of HH:mm strings"
        )
    for value in times:
        if not is_valid_schedule_time(value):
            raise ScheduleValidationError(medicine_id, value)
    return list(times)


def _parse_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def expand_reminders(start_date: date | datetime, schedules: Sequence[MedicineSchedule]) -> list[ReminderDraft]:
    """
    Expand every schedule into one draft per (day offset, time of day).

    Output is ordered by schedule, then day, then position in the time list.
    All schedules are validated up front so a bad value anywhere yields no
    drafts at all.
    """
    if isinstance(start_date, datetime):
        start_date = start_date.date()

    resolved = []
    for schedule in schedules:
        days = validate_duration_days(schedule.prescription_medicine_id, schedule.duration_days)
        times = validate_schedule_times(
            schedule.prescription_medicine_id,
            effective_schedule_times(schedule.schedule_times),
        )
        resolved.append((schedule, days, [_parse_time(t) for t in times]))

    drafts: list[ReminderDraft] = []
    for schedule, days, times in resolved:
        for day in range(days):
            day_date = start_date + timedelta(days=day)
            for clock in times:
                drafts.append(
                    ReminderDraft(
                        prescription_medicine_id=schedule.prescription_medicine_id,
                        reminder_time=datetime.combine(day_date, clock),
                    )
                )
    return drafts
