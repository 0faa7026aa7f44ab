from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config import DEFAULT_SCHEDULE_TIME
from database import Base


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)  # schedule start
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    doctor = relationship("User", foreign_keys=[doctor_id])
    patient = relationship("User", foreign_keys=[patient_id])
    # Children are removed explicitly by services.prescriptions.delete_prescription.
    medicines = relationship(
        "PrescriptionMedicine",
        back_populates="prescription",
        order_by="PrescriptionMedicine.id",
        passive_deletes=True,
    )


class PrescriptionMedicine(Base):
    __tablename__ = "prescription_medicines"

    id = Column(Integer, primary_key=True, index=True)
    prescription_id = Column(
        Integer, ForeignKey("prescriptions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    dosage = Column(String(120), nullable=True)
    instructions = Column(String(500), nullable=True)
    duration_days = Column(Integer, nullable=False, default=1)
    schedule_times = Column(JSON, nullable=False, default=lambda: [DEFAULT_SCHEDULE_TIME])  # ["HH:mm", ...]

    prescription = relationship("Prescription", back_populates="medicines")
    medicine = relationship("Medicine")
    reminders = relationship(
        "MedicineReminder",
        back_populates="prescription_medicine",
        order_by="MedicineReminder.reminder_time",
        passive_deletes=True,
    )
