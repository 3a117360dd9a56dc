"""Database engine, sessions, schema initialization and change notifications."""
from cubicle_booking.db.session import SessionLocal, build_engine, build_session_factory, engine, get_db
from cubicle_booking.db.init_db import init_db, seed_cubicles
from cubicle_booking.db.notifications import install_change_notifications

__all__ = [
    "SessionLocal",
    "build_engine",
    "build_session_factory",
    "engine",
    "get_db",
    "init_db",
    "seed_cubicles",
    "install_change_notifications",
]
