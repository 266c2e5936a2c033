from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from app.services.report_service import ReportType


class ReportCreate(BaseModel):
    zone_id: str = Field(min_length=1)
    report_type: ReportType
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    submitter_id: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ZoneRefOut(BaseModel):
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True


class ReportOut(BaseModel):
    id: str
    zone_id: str
    report_type: str
    lat: Optional[float]
    lng: Optional[float]
    confidence: float
    created_at: datetime
    expires_at: datetime
    active: bool
    zone: Optional[ZoneRefOut] = None

    class Config:
        from_attributes = True
