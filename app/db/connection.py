from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base_class import Base  # noqa: F401


DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise ValueError("DATABASE_URL is not set on .env")

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # sessions are handed to worker threads by the fan-out transport
    connect_args = {"check_same_thread": False}

engine: Engine = create_engine(
    DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
