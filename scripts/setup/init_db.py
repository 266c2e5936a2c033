"""
Initialize database — creates all tables and seeds the campus zones.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
       python scripts/setup/init_db.py --reset   (drops reports + traffic cache, re-seeds zones)

Initial occupancies are demo values (40-90%) typical of a weekday morning.
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.models.zone import Zone
from app.models.report import Report, ReportSubmitter
from app.models.traffic_snapshot import TrafficSnapshot
from sqlalchemy import text, inspect

ZONES = [
    {"name": "Guayabos", "slug": "guayabos", "lat": 6.2009, "lng": -75.5768, "area": "Norte",
     "nearest_access": "vegas", "car_capacity": 267, "moto_capacity": 120,
     "car_occupancy": 160, "moto_occupancy": 55},
    {"name": "Sigma / Plásticos", "slug": "sigma-plasticos", "lat": 6.1995, "lng": -75.5788,
     "area": "Centro-Oeste", "nearest_access": "cra49", "car_capacity": 435, "moto_capacity": 0,
     "car_occupancy": 290, "moto_occupancy": 0},
    {"name": "Ingeniería Sur / Bravo", "slug": "ingenieria-bravo", "lat": 6.1989, "lng": -75.5805,
     "area": "Sur-Oeste", "nearest_access": "cra49", "car_capacity": 194, "moto_capacity": 320,
     "car_occupancy": 140, "moto_occupancy": 200},
    {"name": "Vegas / Empleados", "slug": "vegas-empleados", "lat": 6.2001, "lng": -75.5776,
     "area": "Oriente", "nearest_access": "vegas", "car_capacity": 95, "moto_capacity": 0,
     "car_occupancy": 80, "moto_occupancy": 0},
    {"name": "Sótano / VIP", "slug": "sotano-vip", "lat": 6.1985, "lng": -75.5798, "area": "Sur",
     "nearest_access": "cra49", "car_capacity": 10, "moto_capacity": 0,
     "car_occupancy": 8, "moto_occupancy": 0},
]


def seed_zones(db, reset: bool = False) -> int:
    """Insert missing zones (by slug). With reset, wipe reports, cache and zones first."""
    if reset:
        db.query(Report).delete()
        db.query(ReportSubmitter).delete()
        db.query(TrafficSnapshot).delete()
        db.query(Zone).delete()
        db.commit()

    created = 0
    for data in ZONES:
        if db.query(Zone).filter(Zone.slug == data["slug"]).first():
            continue
        db.add(Zone(**data))
        created += 1
        print(f"   ✓ {data['name']} ({data['slug']})")
    db.commit()
    return created


def main():
    parser = argparse.ArgumentParser(description="Create tables and seed campus zones")
    parser.add_argument("--reset", action="store_true", help="Wipe existing data before seeding")
    args = parser.parse_args()

    print("🗄️  Campus Parking DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = inspect(engine).get_table_names()
    print(f"✅ Tables ready ({len(tables)} total): {', '.join(sorted(tables))}")

    print("\n🌱 Seeding zones...")
    db = SessionLocal()
    try:
        created = seed_zones(db, reset=args.reset)
    finally:
        db.close()

    total_car = sum(z["car_capacity"] for z in ZONES)
    total_moto = sum(z["moto_capacity"] for z in ZONES)
    print(f"✅ {created} zones inserted — {total_car + total_moto} spaces ({total_car} car + {total_moto} moto)")
    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
