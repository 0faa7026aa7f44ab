from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class MedicineReminder(Base):
    __tablename__ = "medicine_reminders"
    __table_args__ = (
        Index("ix_medicine_reminders_sent_time", "sent", "reminder_time"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prescription_medicine_id = Column(
        Integer,
        ForeignKey("prescription_medicines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reminder_time = Column(DateTime, nullable=False)  # naive local wall-clock
    sent = Column(Boolean, nullable=False, default=False)
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    prescription_medicine = relationship("PrescriptionMedicine", back_populates="reminders")
