"""
Traffic cache table.
Exactly one row per monitored access point, overwritten in place by
traffic_service on every refresh (live or synthetic).
"""

from sqlalchemy import Column, String, DateTime, Float, Boolean
from app.database import Base


class TrafficSnapshot(Base):
    __tablename__ = "traffic_snapshots"

    point = Column(String(50), primary_key=True)
    current_speed = Column(Float, nullable=False)      # km/h
    free_flow_speed = Column(Float, nullable=False)    # km/h
    congested = Column(Boolean, nullable=False)
    confidence = Column(Float, default=1.0)
    queried_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<TrafficSnapshot {self.point} {self.current_speed}/{self.free_flow_speed} km/h>"
