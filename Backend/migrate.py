"""
Simple migration script: adds missing columns to existing tables.
Safe to run multiple times (checks before altering).
"""

from sqlalchemy import text, inspect
from sqlalchemy.exc import DBAPIError

from database import engine, Base

# Import all models so Base.metadata knows about them
from models.user import User  # noqa: F401
from models.medicine import Medicine  # noqa: F401
from models.prescription import Prescription, PrescriptionMedicine  # noqa: F401
from models.reminder import MedicineReminder  # noqa: F401

ADVISORY_LOCK_KEY = 734201

# (table, column, DDL type) added after the first release of each table.
COLUMN_MIGRATIONS = [
    ("users", "telegram_username", "VARCHAR(100)"),
    ("medicines", "type", "VARCHAR(100) DEFAULT 'general'"),
    ("prescription_medicines", "duration_days", "INTEGER DEFAULT 1"),
    ("prescription_medicines", "schedule_times", "JSON"),
    ("medicine_reminders", "acknowledged_time", "TIMESTAMP"),
]


def get_existing_columns(conn, table_name: str) -> set:
    """Get the set of column names that already exist in a table."""
    insp = inspect(conn)
    if not insp.has_table(table_name):
        return set()
    return {col["name"] for col in insp.get_columns(table_name)}


def migrate():
    with engine.connect() as conn:
        advisory_lock = False
        if conn.dialect.name == "postgresql":
            # Prevent concurrent migration execution across multiple startup workers.
            try:
                advisory_lock = bool(
                    conn.execute(text(f"SELECT pg_try_advisory_lock({ADVISORY_LOCK_KEY})")).scalar()
                )
            except DBAPIError:
                conn.rollback()
                raise
            if not advisory_lock:
                print("  · Migration skipped: another process is running migrations")
                return

        try:
            # 1. Create any tables that don't exist yet
            Base.metadata.create_all(bind=engine)
            print("  ✓ Tables created/verified")

            # 2. Add columns missing from older deployments
            for table_name, col_name, col_type in COLUMN_MIGRATIONS:
                existing = get_existing_columns(conn, table_name)
                if col_name not in existing:
                    conn.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {col_name} {col_type}"))
                    conn.commit()
                    print(f"  ✓ Added column: {table_name}.{col_name}")
                else:
                    print(f"  · Column already exists: {table_name}.{col_name}")

            # 3. Backfill schedule defaults so every entry expands to reminders
            conn.execute(text(
                "UPDATE prescription_medicines SET duration_days = 1 "
                "WHERE duration_days IS NULL OR duration_days < 1"
            ))
            conn.execute(text(
                "UPDATE prescription_medicines SET schedule_times = '[\"08:00\"]' "
                "WHERE schedule_times IS NULL"
            ))
            conn.commit()
            print("  ✓ prescription_medicines schedule defaults backfilled")
        finally:
            if advisory_lock:
                conn.execute(text(f"SELECT pg_advisory_unlock({ADVISORY_LOCK_KEY})"))
                conn.commit()

    print("  ✓ Migration complete")


if __name__ == "__main__":
    migrate()
