"""
Prescription writes and reminder reconciliation.

Every function that mutates takes the request's ``Session`` and either commits
the whole unit of work or rolls all of it back. The ownership tree
Prescription -> PrescriptionMedicine -> MedicineReminder is cleaned up
explicitly (children first) rather than through ORM cascades.
"""

import logging

from sqlalchemy import insert
from sqlalchemy.orm import Session, joinedload, selectinload

from config import DEFAULT_SCHEDULE_TIME, MAX_DB_ID
from models.medicine import Medicine
from models.prescription import Prescription, PrescriptionMedicine
from models.reminder import MedicineReminder
from models.user import User, UserRole
from services.schedule import (
    MedicineSchedule,
    ScheduleValidationError,
    expand_reminders,
    validate_duration_days,
    validate_schedule_times,
)

logger = logging.getLogger(__name__)


class DuplicateMedicineError(ValueError):
    def __init__(self, medicine_id: int):
        self.medicine_id = medicine_id
        super().__init__(f"Medicine {medicine_id} appears more than once in the prescription")


class ReferenceNotFoundError(LookupError):
    """The payload points at a patient or catalog medicine that does not exist."""


def prescription_query(db: Session):
    """Prescriptions with doctor, patient and medicine entries eagerly loaded."""
    return db.query(Prescription).options(
        joinedload(Prescription.doctor),
        joinedload(Prescription.patient),
        selectinload(Prescription.medicines).joinedload(PrescriptionMedicine.medicine),
    )


def load_prescription(db: Session, prescription_id: int) -> Prescription | None:
    return prescription_query(db).filter(Prescription.id == prescription_id).first()


def _entry_fields(item, require_schedule: bool) -> dict:
    times = item.schedule_times
    if times is None or (isinstance(times, (list, tuple)) and len(times) == 0):
        if require_schedule:
            raise ScheduleValidationError(
                item.medicine_id,
                times,
                f"scheduleTimes for medicine {item.medicine_id} must be a non-empty array of HH:mm strings",
            )
        times = [DEFAULT_SCHEDULE_TIME]
    return {
        "medicine_id": item.medicine_id,
        "dosage": item.dosage,
        "instructions": item.instructions,
        "duration_days": validate_duration_days(item.medicine_id, item.duration_days),
        "schedule_times": validate_schedule_times(item.medicine_id, times),
    }


def _index_items(items, require_schedule: bool) -> dict[int, dict]:
    indexed: dict[int, dict] = {}
    for item in items:
        if item.medicine_id in indexed:
            raise DuplicateMedicineError(item.medicine_id)
        indexed[item.medicine_id] = _entry_fields(item, require_schedule)
    return indexed


def _check_references(db: Session, patient_id: int | None, medicine_ids) -> None:
    if patient_id is not None:
        if not 0 < patient_id <= MAX_DB_ID:
            raise ReferenceNotFoundError("Patient not found")
        patient = (
            db.query(User.id)
            .filter(User.id == patient_id, User.role == UserRole.patient)
            .first()
        )
        if not patient:
            raise ReferenceNotFoundError("Patient not found")
    wanted = set(medicine_ids)
    if wanted:
        lookup = [i for i in wanted if 0 < i <= MAX_DB_ID]
        found = set()
        if lookup:
            found = {row.id for row in db.query(Medicine.id).filter(Medicine.id.in_(lookup))}
        missing = sorted(wanted - found)
        if missing:
            raise ReferenceNotFoundError(f"Medicine not found: {missing}")


def _delete_reminders_for_entries(db: Session, entry_ids: list[int]) -> None:
    if entry_ids:
        db.query(MedicineReminder).filter(
            MedicineReminder.prescription_medicine_id.in_(entry_ids)
        ).delete(synchronize_session=False)


def regenerate_reminders(db: Session, prescription: Prescription) -> int:
    """Replace every reminder of the prescription with a fresh expansion. Does not commit."""
    entries = (
        db.query(PrescriptionMedicine)
        .filter(PrescriptionMedicine.prescription_id == prescription.id)
        .order_by(PrescriptionMedicine.id)
        .all()
    )
    _delete_reminders_for_entries(db, [entry.id for entry in entries])
    drafts = expand_reminders(prescription.date, [MedicineSchedule.from_entry(entry) for entry in entries])
    if drafts:
        db.execute(insert(MedicineReminder), [draft.as_row() for draft in drafts])
    return len(drafts)


def sync_prescription_medicines(db: Session, prescription: Prescription, incoming: dict[int, dict]) -> None:
    """
    Reconcile the prescription's entries with ``incoming`` (medicine_id -> fields).

    Reminders of every current entry are dropped first; entries missing from
    ``incoming`` are deleted, matching ones updated in place and the rest
    created. Reminders are not rebuilt here, see ``regenerate_reminders``.
    """
    existing = (
        db.query(PrescriptionMedicine)
        .filter(PrescriptionMedicine.prescription_id == prescription.id)
        .order_by(PrescriptionMedicine.id)
        .all()
    )
    _delete_reminders_for_entries(db, [entry.id for entry in existing])

    claimed: set[int] = set()
    removed_ids: list[int] = []
    for entry in existing:
        fields = incoming.get(entry.medicine_id)
        if fields is None or entry.medicine_id in claimed:
            removed_ids.append(entry.id)
            continue
        claimed.add(entry.medicine_id)
        for key in ("dosage", "instructions", "duration_days", "schedule_times"):
            setattr(entry, key, fields[key])

    if removed_ids:
        db.query(PrescriptionMedicine).filter(
            PrescriptionMedicine.id.in_(removed_ids)
        ).delete(synchronize_session=False)

    for medicine_id, fields in incoming.items():
        if medicine_id not in claimed:
            db.add(PrescriptionMedicine(prescription_id=prescription.id, **fields))
    db.flush()


def create_prescription(db: Session, doctor_id: int, data) -> Prescription:
    incoming = _index_items(data.medicines, require_schedule=False)
    _check_references(db, data.patient_id, incoming.keys())

    try:
        prescription = Prescription(doctor_id=doctor_id, patient_id=data.patient_id, date=data.date)
        db.add(prescription)
        db.flush()
        for fields in incoming.values():
            db.add(PrescriptionMedicine(prescription_id=prescription.id, **fields))
        db.flush()
        count = regenerate_reminders(db, prescription)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning("Prescription create rolled back for doctor %s: %s", doctor_id, exc)
        raise

    logger.info("Prescription %s created with %s reminder(s)", prescription.id, count)
    return load_prescription(db, prescription.id)


def update_prescription(db: Session, prescription: Prescription, data) -> Prescription:
    incoming = None
    if data.medicines is not None:
        incoming = _index_items(data.medicines, require_schedule=True)
    _check_references(db, data.patient_id, incoming.keys() if incoming else [])

    prescription_id = prescription.id
    try:
        if data.patient_id is not None:
            prescription.patient_id = data.patient_id
        date_changed = data.date is not None and data.date != prescription.date
        if date_changed:
            prescription.date = data.date
        db.flush()
        if incoming is not None:
            sync_prescription_medicines(db, prescription, incoming)
        if incoming is not None or date_changed:
            count = regenerate_reminders(db, prescription)
            logger.info("Prescription %s reminders regenerated: %s", prescription_id, count)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning("Prescription %s update rolled back: %s", prescription_id, exc)
        raise

    return load_prescription(db, prescription_id)


def delete_prescription(db: Session, prescription: Prescription) -> None:
    prescription_id = prescription.id
    entry_ids = [
        row.id
        for row in db.query(PrescriptionMedicine.id).filter(
            PrescriptionMedicine.prescription_id == prescription_id
        )
    ]
    try:
        _delete_reminders_for_entries(db, entry_ids)
        if entry_ids:
            db.query(PrescriptionMedicine).filter(
                PrescriptionMedicine.id.in_(entry_ids)
            ).delete(synchronize_session=False)
        db.query(Prescription).filter(Prescription.id == prescription_id).delete(synchronize_session=False)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning("Prescription %s delete rolled back: %s", prescription_id, exc)
        raise
