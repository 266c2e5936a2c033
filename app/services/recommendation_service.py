"""
Best-route recommendation: crosses zone occupancy with access-point traffic.

Score per zone (for the requested vehicle type):
  availability_score = available / capacity            (0..1]
  traffic_score      = fluid 1.0 | moderate 0.5 | congested 0.2 | no data 0.5
  final_score        = 0.6 * availability_score + 0.4 * traffic_score

Highest score wins; the runner-up is offered as the alternative.
Ties are broken by zone name, then zone id. Read-only.
"""

from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session
from app.exceptions import NoAvailability
from app.models.zone import Zone
from app.services.occupancy_service import VehicleType
from app.services.traffic_service import AccessTraffic, TrafficCache
from app.utils.logger import get_logger
from app.utils.metrics import TrafficState, ZoneStatus, percentage, zone_status

logger = get_logger(__name__)

AVAILABILITY_WEIGHT = 0.6
TRAFFIC_WEIGHT = 0.4

TRAFFIC_SCORES = {
    TrafficState.FLUID: 1.0,
    TrafficState.MODERATE: 0.5,
    TrafficState.CONGESTED: 0.2,
}
NO_TRAFFIC_DATA_SCORE = 0.5


@dataclass
class ScoredZone:
    zone: Zone
    available: int
    percentage: float
    status: ZoneStatus
    access: Optional[AccessTraffic]     # None when the zone's access point has no traffic data
    availability_score: float
    traffic_score: float
    score: float


@dataclass
class Recommendation:
    vehicle_type: VehicleType
    best: ScoredZone
    alternative: Optional[ScoredZone]
    rationale: str
    score: float                        # best.score rounded to 2 decimals


def traffic_score(access: Optional[AccessTraffic]) -> float:
    if access is None:
        return NO_TRAFFIC_DATA_SCORE
    return TRAFFIC_SCORES.get(access.state, NO_TRAFFIC_DATA_SCORE)


def score_zones(zones: list[Zone], traffic: dict[str, AccessTraffic],
                vehicle_type: VehicleType) -> list[ScoredZone]:
    """Qualifying zones, best first."""
    scored = []
    for zone in zones:
        if vehicle_type == VehicleType.CAR:
            capacity, occupied = zone.car_capacity, zone.car_occupancy
        else:
            capacity, occupied = zone.moto_capacity, zone.moto_occupancy

        # Zone does not serve this vehicle type, or has no free spot
        if capacity == 0:
            continue
        available = capacity - occupied
        if available <= 0:
            continue

        access = traffic.get(zone.nearest_access)
        availability = available / capacity
        t_score = traffic_score(access)
        pct = percentage(occupied, capacity)
        scored.append(ScoredZone(
            zone=zone,
            available=available,
            percentage=pct,
            status=zone_status(pct),
            access=access,
            availability_score=availability,
            traffic_score=t_score,
            score=AVAILABILITY_WEIGHT * availability + TRAFFIC_WEIGHT * t_score,
        ))

    scored.sort(key=lambda s: (-s.score, s.zone.name, s.zone.id))
    return scored


def build_rationale(best: ScoredZone) -> str:
    if best.access is None:
        access_text = "(no traffic data for its access road)"
    elif best.access.congested:
        access_text = f"although the {best.access.road} access has traffic"
    else:
        access_text = f"and the {best.access.road} access is flowing"
    return f"{best.zone.name} has {best.available} spots available {access_text}."


async def recommend(db: Session, vehicle_type: VehicleType, traffic_cache: TrafficCache) -> Recommendation:
    vehicle_type = VehicleType(vehicle_type)
    zones = db.query(Zone).filter(Zone.active.is_(True)).all()
    traffic = {t.point: t for t in await traffic_cache.get_all_traffic(False) if t is not None}

    ranked = score_zones(zones, traffic, vehicle_type)
    if not ranked:
        logger.info(f"[ROUTE] No zone available for {vehicle_type.value}")
        raise NoAvailability(f"No zones available for vehicle type '{vehicle_type.value}'")

    best = ranked[0]
    alternative = ranked[1] if len(ranked) > 1 else None
    logger.info(f"[ROUTE] {vehicle_type.value}: {best.zone.slug} score={best.score:.2f} "
                f"(alt={alternative.zone.slug if alternative else None})")
    return Recommendation(
        vehicle_type=vehicle_type,
        best=best,
        alternative=alternative,
        rationale=build_rationale(best),
        score=round(best.score, 2),
    )
