"""Database session management."""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cubicle_booking.config.settings import settings


def build_engine(database_url: Optional[str] = None, **overrides) -> Engine:
    """Create an engine for the configured (or given) database URL."""
    options = settings.engine_options()
    options.update(overrides)
    return create_engine(database_url or settings.DATABASE_URL, **options)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = build_engine()

SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function that yields a database session.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
