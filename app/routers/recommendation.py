"""
GET /best-route?vehicle_type=car|moto
Crosses occupancy with access traffic to recommend a zone. 404 with
code "no_availability" when nothing can take the vehicle type.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.routers.traffic import get_traffic_cache
from app.schemas.recommendation import BestRouteOut
from app.services.occupancy_service import VehicleType
from app.services.recommendation_service import ScoredZone, recommend
from app.services.traffic_service import TrafficCache
from app.utils.clock import utcnow

router = APIRouter()


def _zone(scored: ScoredZone) -> dict:
    z = scored.zone
    return {"id": z.id, "name": z.name, "slug": z.slug, "lat": z.lat, "lng": z.lng,
            "area": z.area, "available": scored.available,
            "percentage": scored.percentage, "status": scored.status}


def _access(scored: ScoredZone):
    if scored.access is None:
        return None
    a = scored.access
    return {"road": a.road, "state": a.state, "current_speed": a.current_speed, "congested": a.congested}


@router.get("/best-route", response_model=BestRouteOut, summary="Best zone to park right now")
async def best_route(vehicle_type: VehicleType = VehicleType.CAR,
                     db: Session = Depends(get_db),
                     cache: TrafficCache = Depends(get_traffic_cache)):
    result = await recommend(db, vehicle_type, cache)
    alt = result.alternative
    return {
        "recommendation": {
            "zone": _zone(result.best),
            "access": _access(result.best),
            "rationale": result.rationale,
            "score": result.score,
            "alternative": {
                "zone": alt.zone.name,
                "available": alt.available,
                "access": alt.access.road if alt.access else None,
                "access_state": alt.access.state if alt.access else None,
            } if alt else None,
        },
        "vehicle_type": vehicle_type,
        "timestamp": utcnow(),
    }
