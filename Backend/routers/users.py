from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user, require_roles
from models.user import User, UserRole
from schemas.user import UserOut

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserOut)
def get_profile(current_user: User = Depends(get_current_user)):
    """Return current user profile."""
    return current_user


@router.get("/", response_model=list[UserOut])
def list_users(
    role: str | None = Query(default=None),
    _: User = Depends(require_roles(UserRole.doctor, UserRole.pharmacist, UserRole.admin)),
    db: Session = Depends(get_db),
):
    """List users for staff, e.g. doctors picking a patient."""
    q = db.query(User)
    if role:
        try:
            q = q.filter(User.role == UserRole(role.strip().lower()))
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid role")
    return q.order_by(User.id.asc()).limit(500).all()
