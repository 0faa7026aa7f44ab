import datetime as dt
from typing import Any

from schemas.base import APIModel
from schemas.medicine import MedicineOut
from schemas.user import UserBrief


class PrescriptionMedicineIn(APIModel):
    medicine_id: int
    dosage: str | None = None
    instructions: str | None = None
    duration_days: int | None = None
    # Shape and bounds are checked by the services so errors can name the medicine.
    schedule_times: Any = None


class PrescriptionCreate(APIModel):
    patient_id: int
    date: dt.date
    medicines: list[PrescriptionMedicineIn] = []


class PrescriptionUpdate(APIModel):
    patient_id: int | None = None
    date: dt.date | None = None
    medicines: list[PrescriptionMedicineIn] | None = None


class PrescriptionMedicineOut(APIModel):
    id: int
    medicine_id: int
    dosage: str | None
    instructions: str | None
    duration_days: int
    schedule_times: list[str]
    medicine: MedicineOut | None = None


class PrescriptionOut(APIModel):
    id: int
    doctor_id: int
    patient_id: int
    date: dt.date
    doctor: UserBrief | None = None
    patient: UserBrief | None = None
    medicines: list[PrescriptionMedicineOut] = []
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
