"""
Crowdsourced report tables.
A report never changes after creation except for the `active` flag; whether it
is still in force is derived at read time from expires_at.
ReportSubmitter holds one row per anonymous submitter so the rate-limit check
can lock that row for the duration of the submit transaction.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=_new_id)
    zone_id = Column(String(36), ForeignKey("zones.id"), nullable=False, index=True)
    report_type = Column(String(30), nullable=False)
    lat = Column(Float)
    lng = Column(Float)
    submitter_id = Column(String(100), index=True)   # anonymous device id, optional
    confidence = Column(Float, default=1.0, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    active = Column(Boolean, default=True, nullable=False)

    zone = relationship("Zone", back_populates="reports")

    def __repr__(self):
        return f"<Report {self.id} type={self.report_type} zone={self.zone_id} active={self.active}>"


class ReportSubmitter(Base):
    __tablename__ = "report_submitters"

    submitter_id = Column(String(100), primary_key=True)
    last_report_at = Column(DateTime, nullable=False)
