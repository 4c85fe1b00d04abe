# shop/data/database.py
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from shop.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS

Base = declarative_base()


def _connect_args(url: str) -> dict:
    # every statement is time-bounded so a hung database cannot stall a request
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": DB_STATEMENT_TIMEOUT_MS / 1000}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"}
    return {}


def build_engine(url: str) -> Engine:
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args=_connect_args(url),
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency: one session per request, always closed.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
