"""Zones: occupancy read endpoints, admin updates and geofence adjustments."""

from collections import defaultdict
from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import NotFound
from app.models.zone import Zone
from app.schemas.zone import (OccupancyAdjust, ReportSummaryOut, ZoneOccupancyUpdate, ZoneOut,
                              ZonesOverviewOut, VehicleOccupancyOut)
from app.services.occupancy_service import adjust_occupancy, set_occupancy
from app.services.report_service import list_active_reports
from app.utils.metrics import percentage, zone_status

router = APIRouter()


def _vehicle(capacity: int, occupancy: int) -> VehicleOccupancyOut:
    return VehicleOccupancyOut(capacity=capacity, occupancy=occupancy,
                               available=capacity - occupancy,
                               percentage=percentage(occupancy, capacity))


def _zone_out(zone: Zone, reports: list) -> ZoneOut:
    # Zone status follows the combined car + moto occupancy
    pct = percentage(zone.car_occupancy + zone.moto_occupancy, zone.car_capacity + zone.moto_capacity)
    return ZoneOut(
        id=zone.id, name=zone.name, slug=zone.slug, lat=zone.lat, lng=zone.lng,
        area=zone.area, nearest_access=zone.nearest_access, active=zone.active,
        car=_vehicle(zone.car_capacity, zone.car_occupancy),
        moto=_vehicle(zone.moto_capacity, zone.moto_occupancy),
        status=zone_status(pct),
        active_report_count=len(reports),
        reports=[ReportSummaryOut.model_validate(r) for r in reports],
    )


@router.get("/zones", response_model=ZonesOverviewOut, summary="All active zones with metrics")
def get_all_zones(db: Session = Depends(get_db)):
    zones = db.query(Zone).filter(Zone.active.is_(True)).order_by(Zone.name).all()
    reports_by_zone = defaultdict(list)
    for report in list_active_reports(db):
        reports_by_zone[report.zone_id].append(report)

    total_spaces = sum(z.car_capacity + z.moto_capacity for z in zones)
    total_occupied = sum(z.car_occupancy + z.moto_occupancy for z in zones)
    return ZonesOverviewOut(
        zones=[_zone_out(z, reports_by_zone[z.id]) for z in zones],
        total_spaces=total_spaces,
        total_occupied=total_occupied,
        global_percentage=percentage(total_occupied, total_spaces),
    )


@router.get("/zones/{zone_ref}", response_model=ZoneOut, summary="One zone by id or slug")
def get_zone_detail(zone_ref: str, db: Session = Depends(get_db)):
    zone = db.query(Zone).filter(or_(Zone.id == zone_ref, Zone.slug == zone_ref)).first()
    if not zone:
        raise NotFound(f"Zone '{zone_ref}' not found")
    reports = [r for r in list_active_reports(db) if r.zone_id == zone.id]
    return _zone_out(zone, reports)


@router.patch("/zones/{zone_id}", response_model=ZoneOut, summary="Admin — set occupancy / active flag")
def update_zone(zone_id: str, body: ZoneOccupancyUpdate, db: Session = Depends(get_db)):
    """Rejected with 422 if a requested occupancy exceeds that vehicle type's capacity."""
    zone = set_occupancy(db, zone_id, car_occupancy=body.car_occupancy,
                         moto_occupancy=body.moto_occupancy, active=body.active)
    reports = [r for r in list_active_reports(db) if r.zone_id == zone.id]
    return _zone_out(zone, reports)


@router.post("/zones/{zone_id}/occupancy/adjust", summary="Signed occupancy delta (geofencing)")
def adjust_zone_occupancy(zone_id: str, body: OccupancyAdjust, db: Session = Depends(get_db)):
    """Clamped to [0, capacity]; never fails because of the bounds."""
    zone = adjust_occupancy(db, zone_id, body.delta, body.vehicle_type)
    return {
        "zone_id": zone.id,
        "vehicle_type": body.vehicle_type.value,
        "car_occupancy": zone.car_occupancy,
        "moto_occupancy": zone.moto_occupancy,
        "status": "updated",
    }
