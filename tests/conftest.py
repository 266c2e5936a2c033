"""Shared fixtures: SQLite sessions (in-memory and file-backed for thread races), zone/provider factories."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("LOG_TO_FILE", "false")

import threading
import pytest
from unittest.mock import AsyncMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables
from app.models.zone import Zone
from app.services.traffic_provider import FlowReading


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_zone(db):
    counter = {"n": 0}

    def _make(name=None, car_capacity=100, car_occupancy=0, moto_capacity=0, moto_occupancy=0,
              nearest_access="vegas", lat=6.2009, lng=-75.5768, active=True):
        counter["n"] += 1
        zone = Zone(
            name=name or f"Zone {counter['n']}",
            slug=f"zone-{counter['n']}",
            lat=lat, lng=lng, area="Test",
            nearest_access=nearest_access,
            car_capacity=car_capacity, car_occupancy=car_occupancy,
            moto_capacity=moto_capacity, moto_occupancy=moto_occupancy,
            active=active,
        )
        db.add(zone)
        db.commit()
        return zone

    return _make


@pytest.fixture
def provider():
    """Traffic provider double: configured, returns a fixed fluid reading."""
    mock = AsyncMock()
    mock.configured = True
    mock.fetch.return_value = FlowReading(current_speed=40.0, free_flow_speed=50.0)
    return mock


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite shared by several threads, one session per thread."""
    engine = create_engine(f"sqlite:///{tmp_path / 'parking.db'}",
                           connect_args={"check_same_thread": False, "timeout": 30})
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=file_engine)


def run_concurrently(workers: int, target):
    """Start `workers` threads on target(index) behind a barrier; return results in index order."""
    barrier = threading.Barrier(workers)
    results = [None] * workers

    def _run(index):
        barrier.wait()
        results[index] = target(index)

    threads = [threading.Thread(target=_run, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


@pytest.fixture
def concurrently():
    return run_concurrently


@pytest.fixture
def seed_zone(session_factory):
    """Insert a zone through its own session on the file-backed engine; returns its id."""
    def _seed(car_capacity=100, car_occupancy=0):
        with session_factory() as session:
            zone = Zone(name="Shared", slug="shared", lat=6.2, lng=-75.579, area="Test",
                        nearest_access="vegas", car_capacity=car_capacity, car_occupancy=car_occupancy,
                        moto_capacity=0, moto_occupancy=0, active=True)
            session.add(zone)
            session.commit()
            return zone.id

    return _seed
