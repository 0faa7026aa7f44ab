"""Seed the database with the medicine catalog and a bootstrap admin account."""

from config import ADMIN_EMAIL, ADMIN_PASSWORD
from database import SessionLocal, Base, engine
from models.medicine import Medicine
from models.user import User, UserRole
from services.security import hash_password

MEDICINES = [
    {"name": "Napa 500mg", "type": "Paracetamol", "description": "Fever, common cold and influenza."},
    {"name": "Ibuprofen 400mg", "type": "NSAID", "description": "Pain and inflammation relief."},
    {"name": "Amoxicillin 500mg", "type": "Antibiotic", "description": "Bacterial infections."},
    {"name": "Cetirizine 10mg", "type": "Antihistamine", "description": "Allergy relief."},
    {"name": "Omeprazole 20mg", "type": "Proton pump inhibitor", "description": "Acidity and reflux."},
    {"name": "Vitamin D3 1000 IU", "type": "Supplement", "description": "Vitamin D deficiency."},
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.email == ADMIN_EMAIL).first()
        if not admin:
            db.add(
                User(
                    name="Admin",
                    email=ADMIN_EMAIL,
                    role=UserRole.admin,
                    password_hash=hash_password(ADMIN_PASSWORD),
                )
            )
            print(f"Created admin account {ADMIN_EMAIL}.")

        existing = db.query(Medicine).count()
        if existing > 0:
            print(f"Database already has {existing} medicines, skipping catalog seed.")
        else:
            for m in MEDICINES:
                db.add(Medicine(**m))
            print(f"Seeded {len(MEDICINES)} medicines.")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
