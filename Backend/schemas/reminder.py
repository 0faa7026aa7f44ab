import datetime as dt
from typing import Any

from schemas.base import APIModel
from schemas.medicine import MedicineOut
from schemas.user import UserBrief


class ReminderPrescriptionOut(APIModel):
    id: int
    date: dt.date
    doctor: UserBrief | None = None
    patient: UserBrief | None = None


class ReminderMedicineEntryOut(APIModel):
    id: int
    medicine_id: int
    dosage: str | None
    instructions: str | None
    medicine: MedicineOut | None = None
    prescription: ReminderPrescriptionOut | None = None


class ReminderOut(APIModel):
    id: int
    prescription_medicine_id: int
    reminder_time: dt.datetime
    sent: bool
    acknowledged: bool
    acknowledged_time: dt.datetime | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    prescription_medicine: ReminderMedicineEntryOut | None = None


class ReminderListOut(APIModel):
    reminders: list[ReminderOut]


class ReminderIdsIn(APIModel):
    # Validated by services.reminders so malformed ids answer 400 rather than 422.
    ids: Any = None


class ReminderStatusOut(APIModel):
    message: str
    updated_ids: list[int]
    not_found_ids: list[int]
