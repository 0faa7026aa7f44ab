from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from config import DATABASE_URL

# SQLite sessions are handed between FastAPI threadpool workers.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# NullPool: each request gets a fresh connection, no pool sharing across
# Gunicorn forked workers.
engine = create_engine(
    DATABASE_URL,
    poolclass=NullPool,
    pool_pre_ping=True,
    connect_args=connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
