# foodorder/data/database.py
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from foodorder.utils.settings import DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency FastAPI - jedna sesja na request, zamykana po odpowiedzi."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
