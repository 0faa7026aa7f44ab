from datetime import date, datetime, timedelta, timezone

import pytest

from models.prescription import Prescription, PrescriptionMedicine
from models.reminder import MedicineReminder
from services.reminders import (
    InvalidTimestampError,
    ReminderIdsError,
    bulk_set_reminder_status,
    fetch_pending_reminders,
    parse_before,
    parse_limit,
    validate_reminder_ids,
)

T = datetime(2025, 1, 10, 12, 0)


@pytest.fixture
def entry(db, doctor, patient, medicines):
    prescription = Prescription(doctor_id=doctor.id, patient_id=patient.id, date=date(2025, 1, 10))
    db.add(prescription)
    db.flush()
    row = PrescriptionMedicine(
        prescription_id=prescription.id,
        medicine_id=medicines[0].id,
        dosage="1 tablet",
        instructions="With water",
        duration_days=1,
        schedule_times=["08:00"],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _reminder(db, entry, when, sent=False, acknowledged=False):
    row = MedicineReminder(
        prescription_medicine_id=entry.id, reminder_time=when, sent=sent, acknowledged=acknowledged
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def test_pending_returns_only_unsent_due_reminders(db, entry):
    due = _reminder(db, entry, T - timedelta(hours=1))
    _reminder(db, entry, T + timedelta(hours=1))
    _reminder(db, entry, T - timedelta(hours=2), sent=True)

    result = fetch_pending_reminders(db, before=T)

    assert [r.id for r in result] == [due.id]


def test_pending_includes_reminder_exactly_at_cutoff(db, entry):
    at_cutoff = _reminder(db, entry, T)
    assert [r.id for r in fetch_pending_reminders(db, before=T)] == [at_cutoff.id]


def test_pending_is_ordered_and_capped(db, entry):
    later = _reminder(db, entry, T - timedelta(minutes=10))
    earliest = _reminder(db, entry, T - timedelta(hours=5))
    middle = _reminder(db, entry, T - timedelta(hours=1))

    assert [r.id for r in fetch_pending_reminders(db, before=T)] == [earliest.id, middle.id, later.id]
    assert [r.id for r in fetch_pending_reminders(db, before=T, limit=2)] == [earliest.id, middle.id]


def test_pending_rows_carry_entry_medicine_and_people(db, entry, doctor, patient, medicines):
    _reminder(db, entry, T - timedelta(hours=1))

    reminder = fetch_pending_reminders(db, before=T)[0]

    assert reminder.prescription_medicine.dosage == "1 tablet"
    assert reminder.prescription_medicine.instructions == "With water"
    assert reminder.prescription_medicine.medicine.name == medicines[0].name
    assert reminder.prescription_medicine.prescription.doctor.id == doctor.id
    assert reminder.prescription_medicine.prescription.patient.id == patient.id


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 100), ("", 100), ("abc", 100), ("0", 100), ("-4", 100), ("1.5", 100),
        ("25", 25), (7, 7), ("1000", 1000), ("1001", 1000), (str(10**25), 1000),
    ],
)
def test_parse_limit(raw, expected):
    assert parse_limit(raw) == expected


def test_parse_before_accepts_naive_iso_strings():
    assert parse_before("2025-01-10T12:00:00") == T
    assert parse_before("2025-01-10") == datetime(2025, 1, 10)


def test_parse_before_converts_aware_values_to_local_naive():
    aware = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
    assert parse_before("2025-01-10T12:00:00Z") == aware.astimezone().replace(tzinfo=None)


def test_parse_before_defaults_to_now():
    lower = datetime.now()
    value = parse_before(None)
    assert lower <= value <= datetime.now()


def test_parse_before_rejects_garbage():
    with pytest.raises(InvalidTimestampError):
        parse_before("next tuesday")


@pytest.mark.parametrize("ids", [None, [], "1,2", [1, "2"], [1, 2.0], [True], {"ids": [1]}])
def test_invalid_id_payloads_are_rejected(ids):
    with pytest.raises(ReminderIdsError):
        validate_reminder_ids(ids)


def test_bulk_acknowledge_reports_partial_success(db, entry):
    first = _reminder(db, entry, T)
    second = _reminder(db, entry, T + timedelta(hours=1))

    result = bulk_set_reminder_status(db, "acknowledged", [first.id, second.id, 999])

    assert result.updated_ids == [first.id, second.id]
    assert result.not_found_ids == [999]
    assert result.is_partial
    db.expire_all()
    rows = db.query(MedicineReminder).order_by(MedicineReminder.id).all()
    assert all(r.acknowledged for r in rows)
    assert all(r.acknowledged_time is not None for r in rows)
    assert not any(r.sent for r in rows)


def test_bulk_sent_full_success(db, entry):
    first = _reminder(db, entry, T)

    result = bulk_set_reminder_status(db, "sent", [first.id, first.id])

    assert result.updated_ids == [first.id]
    assert result.not_found_ids == []
    assert not result.is_partial
    db.expire_all()
    assert db.query(MedicineReminder).one().sent is True
    assert fetch_pending_reminders(db, before=T) == []


def test_repeated_acknowledge_keeps_first_time(db, entry):
    reminder = _reminder(db, entry, T)
    bulk_set_reminder_status(db, "acknowledged", [reminder.id])
    db.expire_all()
    first_time = db.query(MedicineReminder).one().acknowledged_time

    result = bulk_set_reminder_status(db, "acknowledged", [reminder.id])
    db.expire_all()

    assert result.updated_ids == [reminder.id]
    assert db.query(MedicineReminder).one().acknowledged_time == first_time


def test_bulk_with_only_unknown_ids_writes_nothing(db, entry):
    _reminder(db, entry, T)
    result = bulk_set_reminder_status(db, "sent", [404, 405])
    assert result.updated_ids == []
    assert result.not_found_ids == [404, 405]
    db.expire_all()
    assert db.query(MedicineReminder).one().sent is False


def test_unknown_status_field_is_refused(db):
    with pytest.raises(ValueError):
        bulk_set_reminder_status(db, "deleted", [1])


def test_ids_beyond_integer_column_are_not_found(db, entry):
    reminder = _reminder(db, entry, T)
    result = bulk_set_reminder_status(db, "acknowledged", [reminder.id, 2**31, 2**70])

    assert result.updated_ids == [reminder.id]
    assert result.not_found_ids == [2**31, 2**70]
    db.expire_all()
    assert db.query(MedicineReminder).one().acknowledged is True
