from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user, require_roles
from models.medicine import Medicine
from models.prescription import PrescriptionMedicine
from models.user import User, UserRole
from schemas.medicine import MedicineCreate, MedicineOut, MedicineUpdate

router = APIRouter(prefix="/medicines", tags=["Medicines"])
CATALOG_EDITORS = (UserRole.pharmacist, UserRole.admin)


@router.get("/", response_model=list[MedicineOut])
def list_medicines(
    search: str | None = Query(None, description="Search by name or type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List all medicines, optionally filter by search term."""
    q = db.query(Medicine)
    if search:
        pattern = f"%{search}%"
        q = q.filter(Medicine.name.ilike(pattern) | Medicine.type.ilike(pattern))
    return q.order_by(Medicine.id.asc()).offset(skip).limit(limit).all()


@router.get("/{medicine_id}", response_model=MedicineOut)
def get_medicine(
    medicine_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    med = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not med:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return med


@router.post("/", response_model=MedicineOut, status_code=status.HTTP_201_CREATED)
def create_medicine(
    data: MedicineCreate,
    _: User = Depends(require_roles(*CATALOG_EDITORS)),
    db: Session = Depends(get_db),
):
    med = Medicine(**data.model_dump())
    db.add(med)
    db.commit()
    db.refresh(med)
    return med


@router.put("/{medicine_id}", response_model=MedicineOut)
def update_medicine(
    medicine_id: int,
    data: MedicineUpdate,
    _: User = Depends(require_roles(*CATALOG_EDITORS)),
    db: Session = Depends(get_db),
):
    med = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not med:
        raise HTTPException(status_code=404, detail="Medicine not found")
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(med, key, value)
    db.commit()
    db.refresh(med)
    return med


@router.delete("/{medicine_id}")
def delete_medicine(
    medicine_id: int,
    _: User = Depends(require_roles(*CATALOG_EDITORS)),
    db: Session = Depends(get_db),
):
    med = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not med:
        raise HTTPException(status_code=404, detail="Medicine not found")
    in_use = db.query(PrescriptionMedicine.id).filter(PrescriptionMedicine.medicine_id == medicine_id).first()
    if in_use:
        raise HTTPException(status_code=409, detail="Medicine is referenced by prescriptions")
    db.delete(med)
    db.commit()
    return {"message": "Medicine deleted"}
