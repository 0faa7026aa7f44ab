import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="medtrack-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOGS_DIR"] = os.path.join(_TMP_DIR, "logs")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models.medicine import Medicine  # noqa: E402
from models.user import User, UserRole  # noqa: E402
from services.security import create_access_token, hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, role: UserRole, email: str, name: str) -> User:
    user = User(name=name, email=email, role=role, password_hash=hash_password("secret123"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def doctor(db):
    return _make_user(db, UserRole.doctor, "house@example.com", "Gregory House")


@pytest.fixture
def other_doctor(db):
    return _make_user(db, UserRole.doctor, "wilson@example.com", "James Wilson")


@pytest.fixture
def patient(db):
    return _make_user(db, UserRole.patient, "patient@example.com", "Jane Roe")


@pytest.fixture
def other_patient(db):
    return _make_user(db, UserRole.patient, "second@example.com", "John Roe")


@pytest.fixture
def pharmacist(db):
    return _make_user(db, UserRole.pharmacist, "pharma@example.com", "Pat Pharma")


@pytest.fixture
def admin(db):
    return _make_user(db, UserRole.admin, "admin@example.com", "Admin")


@pytest.fixture
def medicines(db):
    rows = [
        Medicine(name="Napa 500mg", type="Paracetamol", description="Fever"),
        Medicine(name="Amoxicillin 500mg", type="Antibiotic", description="Infections"),
        Medicine(name="Cetirizine 10mg", type="Antihistamine", description="Allergy"),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers
