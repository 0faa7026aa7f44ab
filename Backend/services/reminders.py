import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Query, Session, joinedload

from config import MAX_DB_ID, REMINDER_QUERY_DEFAULT_LIMIT, REMINDER_QUERY_MAX_LIMIT
from models.prescription import Prescription, PrescriptionMedicine
from models.reminder import MedicineReminder

logger = logging.getLogger(__name__)

REMINDER_STATUS_FIELDS = ("sent", "acknowledged")


class ReminderIdsError(ValueError):
    pass


class InvalidTimestampError(ValueError):
    pass


@dataclass
class ReminderStatusResult:
    field: str
    updated_ids: list[int] = field(default_factory=list)
    not_found_ids: list[int] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.not_found_ids)


def parse_limit(raw) -> int:
    """Positive integer capped at the max page size, anything else falls back to the default."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return REMINDER_QUERY_DEFAULT_LIMIT
    if limit <= 0:
        return REMINDER_QUERY_DEFAULT_LIMIT
    return min(limit, REMINDER_QUERY_MAX_LIMIT)


def parse_before(raw: str | None) -> datetime:
    if raw is None or not str(raw).strip():
        return datetime.now()
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidTimestampError(f"Invalid 'before' timestamp: {raw!r}")
    if value.tzinfo is not None:
        # Reminder times are naive local wall-clock values.
        value = value.astimezone().replace(tzinfo=None)
    return value


def _with_details(query: Query) -> Query:
    return query.options(
        joinedload(MedicineReminder.prescription_medicine).joinedload(PrescriptionMedicine.medicine),
        joinedload(MedicineReminder.prescription_medicine)
        .joinedload(PrescriptionMedicine.prescription)
        .joinedload(Prescription.doctor),
        joinedload(MedicineReminder.prescription_medicine)
        .joinedload(PrescriptionMedicine.prescription)
        .joinedload(Prescription.patient),
    )


def fetch_pending_reminders(
    db: Session,
    before: datetime | None = None,
    limit: int = REMINDER_QUERY_DEFAULT_LIMIT,
) -> list[MedicineReminder]:
    """Unsent reminders due at or before ``before``, oldest first."""
    cutoff = before or datetime.now()
    return (
        _with_details(db.query(MedicineReminder))
        .filter(
            MedicineReminder.sent.is_(False),
            MedicineReminder.reminder_time <= cutoff,
        )
        .order_by(MedicineReminder.reminder_time.asc(), MedicineReminder.id.asc())
        .limit(limit)
        .all()
    )


def list_prescription_reminders(db: Session, prescription_id: int) -> list[MedicineReminder]:
    return (
        _with_details(db.query(MedicineReminder))
        .join(PrescriptionMedicine, PrescriptionMedicine.id == MedicineReminder.prescription_medicine_id)
        .filter(PrescriptionMedicine.prescription_id == prescription_id)
        .order_by(MedicineReminder.reminder_time.asc(), MedicineReminder.id.asc())
        .all()
    )


def validate_reminder_ids(ids) -> list[int]:
    if not isinstance(ids, list) or not ids:
        raise ReminderIdsError('"ids" must be a non-empty array of numbers')
    # bool is an int subclass; JSON true/false are not reminder ids.
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        raise ReminderIdsError("All IDs must be integers")
    return list(dict.fromkeys(ids))


def bulk_set_reminder_status(db: Session, field_name: str, ids) -> ReminderStatusResult:
    """
    Set ``sent`` or ``acknowledged`` to true on every existing reminder in ``ids``.

    Unknown ids are reported back instead of failing the call. Rows already in
    the target state are left untouched, so repeating a call changes nothing.
    """
    if field_name not in REMINDER_STATUS_FIELDS:
        raise ValueError(f"Unsupported reminder status field: {field_name}")
    ids = validate_reminder_ids(ids)

    # Ids no INTEGER column can hold cannot exist; keep them out of the SQL.
    lookup = [i for i in ids if 0 < i <= MAX_DB_ID]
    found = set()
    if lookup:
        found = {row.id for row in db.query(MedicineReminder.id).filter(MedicineReminder.id.in_(lookup))}
    result = ReminderStatusResult(
        field=field_name,
        updated_ids=[i for i in ids if i in found],
        not_found_ids=[i for i in ids if i not in found],
    )
    if not result.updated_ids:
        return result

    column = getattr(MedicineReminder, field_name)
    values = {field_name: True}
    if field_name == "acknowledged":
        values["acknowledged_time"] = datetime.now()
    try:
        db.query(MedicineReminder).filter(
            MedicineReminder.id.in_(result.updated_ids),
            column.is_(False),
        ).update(values, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Reminders marked %s: %s updated, %s not found",
        field_name,
        len(result.updated_ids),
        len(result.not_found_ids),
    )
    return result
