"""Database initialization utilities."""
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from cubicle_booking.models import Base, Cubicle
from cubicle_booking.models.cubicle import CUBICLE_IDS

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """
    Create any missing tables.

    Suitable for development and tests; production schemas are expected
    to be managed with migrations.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


def seed_cubicles(session_factory: sessionmaker) -> int:
    """
    Insert the rows of the fixed cubicle set (1-4) that do not exist yet.

    Returns:
        Number of cubicles inserted
    """
    with session_factory() as db:
        existing = {row[0] for row in db.query(Cubicle.id).all()}
        missing = [cubicle_id for cubicle_id in CUBICLE_IDS if cubicle_id not in existing]
        for cubicle_id in missing:
            db.add(Cubicle(id=cubicle_id, is_occupied=False))
        db.commit()

    if missing:
        logger.info(f"Seeded cubicles: {missing}")
    return len(missing)

