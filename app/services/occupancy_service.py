"""
Zone occupancy counters.
Every writer (crowdsourced reports, admin dashboard, geofence deltas) goes
through this module. Each mutation is a single conditional UPDATE evaluated
against the stored row, so concurrent writers never lose each other's changes
and a counter never leaves [0, capacity].
"""

from enum import Enum
from typing import Optional
from sqlalchemy import case
from sqlalchemy.orm import Session
from app.exceptions import CapacityExceeded, NotFound, ValidationError
from app.models.zone import Zone
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


class VehicleType(str, Enum):
    CAR = "car"
    MOTO = "moto"


_COLUMNS = {
    VehicleType.CAR: (Zone.car_occupancy, Zone.car_capacity),
    VehicleType.MOTO: (Zone.moto_occupancy, Zone.moto_capacity),
}


def _clamped(occupancy, capacity, delta: int):
    shifted = occupancy + delta
    return case(
        (shifted < 0, 0),
        (shifted > capacity, capacity),
        else_=shifted,
    )


def get_zone(db: Session, zone_id: str) -> Zone:
    zone = db.query(Zone).filter(Zone.id == zone_id).first()
    if not zone:
        raise NotFound(f"Zone '{zone_id}' not found")
    return zone


def _reload(db: Session, zone_id: str) -> Zone:
    return db.query(Zone).populate_existing().filter(Zone.id == zone_id).one()


def adjust_occupancy(db: Session, zone_id: str, delta: int,
                     vehicle_type: VehicleType = VehicleType.CAR, commit: bool = True) -> Zone:
    """Shift a counter by a signed delta, clamped to [0, capacity]."""
    occupancy, capacity = _COLUMNS[vehicle_type]
    updated = (
        db.query(Zone)
        .filter(Zone.id == zone_id)
        .update({occupancy: _clamped(occupancy, capacity, delta), Zone.updated_at: utcnow()},
                synchronize_session=False)
    )
    if not updated:
        raise NotFound(f"Zone '{zone_id}' not found")
    if commit:
        db.commit()
    zone = _reload(db, zone_id)
    logger.info(f"[OCCUPANCY] {zone_id} {vehicle_type.value} {delta:+d} → "
                f"{getattr(zone, occupancy.key)}/{getattr(zone, capacity.key)}")
    return zone


def mark_full(db: Session, zone_id: str, commit: bool = True) -> Zone:
    """Saturate car occupancy to car capacity. Motorcycle counters are untouched."""
    updated = (
        db.query(Zone)
        .filter(Zone.id == zone_id)
        .update({Zone.car_occupancy: Zone.car_capacity, Zone.updated_at: utcnow()},
                synchronize_session=False)
    )
    if not updated:
        raise NotFound(f"Zone '{zone_id}' not found")
    if commit:
        db.commit()
    logger.info(f"[OCCUPANCY] {zone_id} car marked full")
    return _reload(db, zone_id)


def set_occupancy(db: Session, zone_id: str, car_occupancy: Optional[int] = None,
                  moto_occupancy: Optional[int] = None, active: Optional[bool] = None) -> Zone:
    """
    Admin overwrite of the counters and the active flag.
    Values above capacity are rejected, never truncated.
    """
    zone = get_zone(db, zone_id)

    for label, value, cap in (("car", car_occupancy, zone.car_capacity),
                              ("moto", moto_occupancy, zone.moto_capacity)):
        if value is None:
            continue
        if value < 0:
            raise ValidationError(f"{label.capitalize()} occupancy cannot be negative ({value})")
        if value > cap:
            raise CapacityExceeded(f"{label.capitalize()} occupancy ({value}) exceeds capacity ({cap})")

    values = {Zone.updated_at: utcnow()}
    q = db.query(Zone).filter(Zone.id == zone_id)
    if car_occupancy is not None:
        values[Zone.car_occupancy] = car_occupancy
        q = q.filter(Zone.car_capacity >= car_occupancy)
    if moto_occupancy is not None:
        values[Zone.moto_occupancy] = moto_occupancy
        q = q.filter(Zone.moto_capacity >= moto_occupancy)
    if active is not None:
        values[Zone.active] = active

    if not q.update(values, synchronize_session=False):
        db.rollback()
        raise CapacityExceeded(f"Requested occupancy exceeds the capacity of zone '{zone_id}'")
    db.commit()
    zone = _reload(db, zone_id)
    logger.info(f"[OCCUPANCY] {zone_id} set car={zone.car_occupancy}/{zone.car_capacity} "
                f"moto={zone.moto_occupancy}/{zone.moto_capacity} active={zone.active}")
    return zone
