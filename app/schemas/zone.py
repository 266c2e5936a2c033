from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from app.services.occupancy_service import VehicleType
from app.utils.metrics import ZoneStatus


class VehicleOccupancyOut(BaseModel):
    capacity: int
    occupancy: int
    available: int
    percentage: float


class ReportSummaryOut(BaseModel):
    id: str
    report_type: str
    confidence: float
    expires_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ZoneOut(BaseModel):
    id: str
    name: str
    slug: str
    lat: float
    lng: float
    area: Optional[str]
    nearest_access: str
    active: bool
    car: VehicleOccupancyOut
    moto: VehicleOccupancyOut
    status: ZoneStatus
    active_report_count: int
    reports: list[ReportSummaryOut] = []


class ZonesOverviewOut(BaseModel):
    zones: list[ZoneOut]
    total_spaces: int
    total_occupied: int
    global_percentage: float


class ZoneOccupancyUpdate(BaseModel):
    car_occupancy: Optional[int] = Field(default=None, ge=0)
    moto_occupancy: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None


class OccupancyAdjust(BaseModel):
    delta: int = Field(ge=-1000, le=1000)
    vehicle_type: VehicleType = VehicleType.CAR
