from models.user import User, UserRole
from models.medicine import Medicine
from models.prescription import Prescription, PrescriptionMedicine
from models.reminder import MedicineReminder

__all__ = ["User", "UserRole", "Medicine", "Prescription", "PrescriptionMedicine", "MedicineReminder"]
