from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User, UserRole
from schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from schemas.user import UserOut
from services.security import create_access_token, hash_password, verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])
SELF_REGISTER_ROLES = {UserRole.patient, UserRole.doctor, UserRole.pharmacist}


def _normalize_role(role: str | None) -> str:
    return (role or UserRole.patient.value).strip().lower()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account. Admin accounts are provisioned by seed.py only."""
    email = req.email.strip().lower()
    try:
        role = UserRole(_normalize_role(req.role))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid role")
    if role not in SELF_REGISTER_ROLES:
        raise HTTPException(status_code=403, detail="Admin accounts cannot self-register")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        name=(req.name or "").strip() or None,
        email=email,
        telegram_username=req.telegram_username,
        password_hash=hash_password(req.password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    email = req.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        role=user.role.value,
        name=user.name,
        email=user.email,
    )
