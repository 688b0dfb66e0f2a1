"""Database connection and session factory.

Naive datetimes loaded through SessionLocal are tagged as UTC on load
without marking the row dirty.
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from .config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

if _is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={"connect_timeout": 10},
    )
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@event.listens_for(engine, "connect")
def _on_connect(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    if _is_sqlite:
        # Match PostgreSQL semantics: FKs enforced, LIKE case-sensitive
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA case_sensitive_like=ON")
    else:
        cursor.execute("SET timezone = 'UTC'")
    cursor.close()


@event.listens_for(SessionLocal, "loaded_as_persistent")
def _make_datetimes_aware(session, instance):
    for key in instance.__class__.__table__.columns.keys():
        val = getattr(instance, key, None)
        if isinstance(val, datetime) and val.tzinfo is None:
            set_committed_value(instance, key, val.replace(tzinfo=timezone.utc))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
