from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user, require_roles
from models.prescription import Prescription
from models.user import User, UserRole
from schemas.prescription import PrescriptionCreate, PrescriptionOut, PrescriptionUpdate
from schemas.reminder import ReminderListOut, ReminderOut
from services.prescriptions import (
    DuplicateMedicineError,
    ReferenceNotFoundError,
    create_prescription,
    delete_prescription,
    load_prescription,
    prescription_query,
    update_prescription,
)
from services.reminders import list_prescription_reminders
from services.schedule import ScheduleValidationError

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


def _visible_to(prescription: Prescription, user: User) -> bool:
    if user.role == UserRole.doctor:
        return prescription.doctor_id == user.id
    if user.role == UserRole.patient:
        return prescription.patient_id == user.id
    return True


def _get_visible_or_404(db: Session, prescription_id: int, user: User) -> Prescription:
    prescription = load_prescription(db, prescription_id)
    # Not-owned and missing look the same to the caller.
    if not prescription or not _visible_to(prescription, user):
        raise HTTPException(status_code=404, detail="Prescription not found")
    return prescription


@router.post("/", response_model=PrescriptionOut, status_code=status.HTTP_201_CREATED)
def create(
    data: PrescriptionCreate,
    current_user: User = Depends(require_roles(UserRole.doctor)),
    db: Session = Depends(get_db),
):
    """Create a prescription, its medicine entries and every derived reminder."""
    try:
        prescription = create_prescription(db, current_user.id, data)
    except (ScheduleValidationError, DuplicateMedicineError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReferenceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PrescriptionOut.model_validate(prescription)


@router.get("/", response_model=list[PrescriptionOut])
def list_prescriptions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Doctors and patients see their own prescriptions, other roles see all."""
    q = prescription_query(db)
    if current_user.role == UserRole.doctor:
        q = q.filter(Prescription.doctor_id == current_user.id)
    elif current_user.role == UserRole.patient:
        q = q.filter(Prescription.patient_id == current_user.id)
    rows = q.order_by(Prescription.date.desc(), Prescription.id.desc()).all()
    return [PrescriptionOut.model_validate(p) for p in rows]


@router.get("/{prescription_id}", response_model=PrescriptionOut)
def get_prescription(
    prescription_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return PrescriptionOut.model_validate(_get_visible_or_404(db, prescription_id, current_user))


@router.get("/{prescription_id}/reminders", response_model=ReminderListOut)
def get_prescription_reminders(
    prescription_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Full reminder schedule of one prescription, sent or not."""
    _get_visible_or_404(db, prescription_id, current_user)
    reminders = list_prescription_reminders(db, prescription_id)
    return ReminderListOut(reminders=[ReminderOut.model_validate(r) for r in reminders])


@router.put("/{prescription_id}", response_model=PrescriptionOut)
def update(
    prescription_id: int,
    data: PrescriptionUpdate,
    current_user: User = Depends(require_roles(UserRole.doctor)),
    db: Session = Depends(get_db),
):
    """Update basic fields and reconcile the medicine list; reminders are rebuilt."""
    prescription = (
        db.query(Prescription)
        .filter(Prescription.id == prescription_id, Prescription.doctor_id == current_user.id)
        .with_for_update()
        .first()
    )
    if not prescription:
        raise HTTPException(status_code=404, detail="Prescription not found")
    try:
        prescription = update_prescription(db, prescription, data)
    except (ScheduleValidationError, DuplicateMedicineError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReferenceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PrescriptionOut.model_validate(prescription)


@router.delete("/{prescription_id}")
def delete(
    prescription_id: int,
    current_user: User = Depends(require_roles(UserRole.doctor, UserRole.admin)),
    db: Session = Depends(get_db),
):
    """Delete a prescription with its medicine entries and reminders (owner doctor or admin)."""
    q = db.query(Prescription).filter(Prescription.id == prescription_id)
    if current_user.role == UserRole.doctor:
        q = q.filter(Prescription.doctor_id == current_user.id)
    prescription = q.first()
    if not prescription:
        raise HTTPException(status_code=404, detail="Prescription not found")
    delete_prescription(db, prescription)
    return {"message": "Prescription deleted"}
