"""
Parking zone table.
Static attributes (name, coordinates, capacities) are set once by the seed
script; the occupancy counters are mutated only through occupancy_service.
"""

import uuid
from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.clock import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Zone(Base):
    __tablename__ = "zones"
    __table_args__ = (
        CheckConstraint("car_occupancy >= 0 AND car_occupancy <= car_capacity", name="ck_zone_car_occupancy"),
        CheckConstraint("moto_occupancy >= 0 AND moto_occupancy <= moto_capacity", name="ck_zone_moto_occupancy"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    area = Column(String(50))                          # Norte | Centro-Oeste | ...
    nearest_access = Column(String(50), nullable=False)  # key into settings.ACCESS_POINTS
    car_capacity = Column(Integer, default=0, nullable=False)
    moto_capacity = Column(Integer, default=0, nullable=False)
    car_occupancy = Column(Integer, default=0, nullable=False)
    moto_occupancy = Column(Integer, default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    reports = relationship("Report", back_populates="zone")

    def __repr__(self):
        return (f"<Zone {self.slug} car={self.car_occupancy}/{self.car_capacity} "
                f"moto={self.moto_occupancy}/{self.moto_capacity}>")
