from datetime import date, datetime

import pytest

from config import MAX_DURATION_DAYS
from services.schedule import (
    MedicineSchedule,
    ScheduleValidationError,
    effective_duration_days,
    expand_reminders,
    is_valid_schedule_time,
    validate_duration_days,
)

START = date(2025, 1, 1)


@pytest.mark.parametrize("value", ["08:00", "23:59", "00:00", "12:30", "19:05"])
def test_valid_schedule_times(value):
    assert is_valid_schedule_time(value)


@pytest.mark.parametrize(
    "value",
    ["24:00", "8:00", "08:60", "8:0", "", "08:00 ", " 08:00", "08:00\n", "0800", "08-00", "٠٨:٠٠", None, 800],
)
def test_invalid_schedule_times(value):
    assert not is_valid_schedule_time(value)


def test_expansion_count_is_days_times_slots():
    drafts = expand_reminders(START, [MedicineSchedule(1, 5, ["08:00", "14:00", "20:00"])])
    assert len(drafts) == 15
    assert {d.prescription_medicine_id for d in drafts} == {1}
    assert all(d.sent is False and d.acknowledged is False for d in drafts)


def test_two_day_twice_daily_scenario():
    drafts = expand_reminders(START, [MedicineSchedule(7, 2, ["08:00", "20:00"])])
    assert [d.reminder_time for d in drafts] == [
        datetime(2025, 1, 1, 8, 0),
        datetime(2025, 1, 1, 20, 0),
        datetime(2025, 1, 2, 8, 0),
        datetime(2025, 1, 2, 20, 0),
    ]


def test_expansion_is_deterministic():
    schedules = [MedicineSchedule(1, 3, ["21:00", "07:30"]), MedicineSchedule(2, 2, ["12:00"])]
    assert expand_reminders(START, schedules) == expand_reminders(START, schedules)


def test_ordering_follows_entries_then_days_then_time_list():
    drafts = expand_reminders(START, [MedicineSchedule(1, 2, ["21:00", "07:30"]), MedicineSchedule(2, 1, ["12:00"])])
    assert [(d.prescription_medicine_id, d.reminder_time) for d in drafts] == [
        (1, datetime(2025, 1, 1, 21, 0)),
        (1, datetime(2025, 1, 1, 7, 30)),
        (1, datetime(2025, 1, 2, 21, 0)),
        (1, datetime(2025, 1, 2, 7, 30)),
        (2, datetime(2025, 1, 1, 12, 0)),
    ]


def test_empty_schedule_defaults_to_eight_am_each_day():
    drafts = expand_reminders(START, [MedicineSchedule(3, 3, [])])
    assert [d.reminder_time for d in drafts] == [
        datetime(2025, 1, 1, 8, 0),
        datetime(2025, 1, 2, 8, 0),
        datetime(2025, 1, 3, 8, 0),
    ]


@pytest.mark.parametrize("days", [None, 0, -3])
def test_non_positive_or_missing_duration_means_one_day(days):
    drafts = expand_reminders(START, [MedicineSchedule(1, days, ["09:15", "18:45"])])
    assert [d.reminder_time for d in drafts] == [datetime(2025, 1, 1, 9, 15), datetime(2025, 1, 1, 18, 45)]
    assert effective_duration_days(days) == 1


def test_invalid_time_aborts_whole_expansion():
    schedules = [MedicineSchedule(1, 2, ["08:00"]), MedicineSchedule(2, 2, ["08:00", "24:00"])]
    with pytest.raises(ScheduleValidationError) as excinfo:
        expand_reminders(START, schedules)
    assert excinfo.value.medicine_id == 2
    assert excinfo.value.value == "24:00"
    assert "24:00" in str(excinfo.value)


def test_no_entries_yields_nothing():
    assert expand_reminders(START, []) == []


def test_datetime_start_uses_date_part_only():
    drafts = expand_reminders(datetime(2025, 3, 10, 17, 42, 11), [MedicineSchedule(1, 1, ["06:05"])])
    assert drafts[0].reminder_time == datetime(2025, 3, 10, 6, 5, 0)


def test_expansion_crosses_month_boundary():
    drafts = expand_reminders(date(2024, 2, 28), [MedicineSchedule(1, 3, ["10:00"])])
    assert [d.reminder_time.date() for d in drafts] == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_duration_above_cap_is_refused_before_expanding():
    assert validate_duration_days(1, MAX_DURATION_DAYS) == MAX_DURATION_DAYS
    with pytest.raises(ScheduleValidationError) as excinfo:
        expand_reminders(START, [MedicineSchedule(7, 10**9, ["08:00"])])
    assert excinfo.value.medicine_id == 7
    assert str(MAX_DURATION_DAYS) in str(excinfo.value)
