from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from app.services.occupancy_service import VehicleType
from app.utils.metrics import TrafficState, ZoneStatus


class RecommendedZoneOut(BaseModel):
    id: str
    name: str
    slug: str
    lat: float
    lng: float
    area: Optional[str]
    available: int
    percentage: float
    status: ZoneStatus


class RecommendedAccessOut(BaseModel):
    road: str
    state: TrafficState
    current_speed: float
    congested: bool


class AlternativeOut(BaseModel):
    zone: str
    available: int
    access: Optional[str]          # None when the access has no traffic data
    access_state: Optional[TrafficState]


class RecommendationOut(BaseModel):
    zone: RecommendedZoneOut
    access: Optional[RecommendedAccessOut]
    rationale: str
    score: float
    alternative: Optional[AlternativeOut]


class BestRouteOut(BaseModel):
    recommendation: RecommendationOut
    vehicle_type: VehicleType
    timestamp: datetime
