"""
Database connection, session management, and table creation.
Uses SQLAlchemy (SQLite by default, PostgreSQL in production). All models are
auto-imported here so create_tables() creates every table in one call.

Services never open sessions themselves: a Session is handed to them
(FastAPI dependency or script), and the engine lifecycle is explicit —
create_tables() at startup, dispose_engine() at shutdown.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings


def build_engine(url: str):
    """Engine factory shared by the app, the setup scripts and the tests."""
    if url.startswith("sqlite"):
        # SQLite connections are used from FastAPI's threadpool
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.zone import Zone                          # noqa
    from app.models.report import Report, ReportSubmitter     # noqa
    from app.models.traffic_snapshot import TrafficSnapshot   # noqa

    Base.metadata.create_all(bind=bind or engine)


def dispose_engine():
    """Close every pooled connection. Called once at shutdown."""
    engine.dispose()
