"""
Access-point traffic.
GET  /traffic         — cached state of every access point (TTL 60s)
GET  /traffic/{point} — one access point
POST /traffic/refresh — bypass the cache TTL (admin dashboard)
Synthetic data is flagged with `synthetic: true`; provider failures never surface here.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import NotFound
from app.schemas.traffic import AccessTrafficOut, TrafficOut
from app.services.traffic_service import TrafficCache

router = APIRouter()


def get_traffic_cache(db: Session = Depends(get_db)) -> TrafficCache:
    return TrafficCache(db)


@router.get("/traffic", response_model=TrafficOut, summary="Traffic at every campus access")
async def get_all_traffic(cache: TrafficCache = Depends(get_traffic_cache)):
    return {"access_points": await cache.get_all_traffic(force_refresh=False)}


@router.post("/traffic/refresh", response_model=TrafficOut, summary="Force a traffic refresh")
async def refresh_traffic(cache: TrafficCache = Depends(get_traffic_cache)):
    return {"access_points": await cache.get_all_traffic(force_refresh=True)}


@router.get("/traffic/{point}", response_model=AccessTrafficOut, summary="Traffic at one access")
async def get_point_traffic(point: str, cache: TrafficCache = Depends(get_traffic_cache)):
    result = await cache.get_traffic(point)
    if result is None:
        raise NotFound(f"Access point '{point}' not found")
    return result
