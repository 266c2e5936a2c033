"""
Crowdsourced reports.

Business rules:
  - Rate limit: max REPORT_RATE_LIMIT reports per submitter within
    REPORT_RATE_WINDOW_MINUTES (submitter row is write-locked while counting)
  - TTL per type: moderate_queue=15m, severe_congestion=20m, full=30m,
    spots_available=10m, accident=45m
  - spots_available → car occupancy -5 (never below 0)
  - full           → car occupancy = car capacity
The report insert and its occupancy side-effect commit together.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from app.config import settings
from app.exceptions import NotFound, RateLimited
from app.models.report import Report, ReportSubmitter
from app.services.occupancy_service import VehicleType, adjust_occupancy, get_zone, mark_full
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ReportType(str, Enum):
    MODERATE_QUEUE = "moderate_queue"
    SEVERE_CONGESTION = "severe_congestion"
    FULL = "full"
    SPOTS_AVAILABLE = "spots_available"
    ACCIDENT = "accident"


REPORT_TTL_MINUTES = {
    ReportType.MODERATE_QUEUE: 15,
    ReportType.SEVERE_CONGESTION: 20,
    ReportType.FULL: 30,
    ReportType.SPOTS_AVAILABLE: 10,
    ReportType.ACCIDENT: 45,
}
DEFAULT_TTL_MINUTES = 15

SPOTS_AVAILABLE_RELEASE = 5   # car spots freed by one spots_available report


def report_ttl(report_type) -> timedelta:
    try:
        minutes = REPORT_TTL_MINUTES[ReportType(report_type)]
    except ValueError:
        minutes = DEFAULT_TTL_MINUTES
    return timedelta(minutes=minutes)


def is_report_active(report: Report, now: Optional[datetime] = None) -> bool:
    return bool(report.active) and (now or utcnow()) < report.expires_at


def _lock_submitter(db: Session, submitter_id: str, now: datetime):
    """
    Take a row-level write lock on the submitter, held until the submit
    transaction ends, so concurrent submissions are counted one after another.
    """
    for _ in range(2):
        touched = (
            db.query(ReportSubmitter)
            .filter(ReportSubmitter.submitter_id == submitter_id)
            .update({ReportSubmitter.last_report_at: now}, synchronize_session=False)
        )
        if touched:
            return
        try:
            db.add(ReportSubmitter(submitter_id=submitter_id, last_report_at=now))
            db.flush()
            return
        except IntegrityError:
            # Inserted concurrently by another request: lock the existing row instead.
            # Nothing else has been written yet in this transaction.
            db.rollback()
    raise RuntimeError(f"Could not lock submitter '{submitter_id}'")


def submit_report(db: Session, zone_id: str, report_type: ReportType,
                  submitter_id: Optional[str] = None, lat: Optional[float] = None,
                  lng: Optional[float] = None, now: Optional[datetime] = None) -> Report:
    now = now or utcnow()
    report_type = ReportType(report_type)
    get_zone(db, zone_id)

    try:
        if submitter_id:
            _lock_submitter(db, submitter_id, now)
            window_start = now - timedelta(minutes=settings.REPORT_RATE_WINDOW_MINUTES)
            recent = db.query(Report).filter(
                Report.submitter_id == submitter_id,
                Report.created_at > window_start,
            ).count()
            if recent >= settings.REPORT_RATE_LIMIT:
                logger.warning(f"[REPORTS] Rate limit hit for submitter {submitter_id} ({recent} recent)")
                raise RateLimited(
                    f"Report limit reached. Maximum {settings.REPORT_RATE_LIMIT} reports "
                    f"in {settings.REPORT_RATE_WINDOW_MINUTES} minutes."
                )

        report = Report(
            zone_id=zone_id,
            report_type=report_type.value,
            lat=lat,
            lng=lng,
            submitter_id=submitter_id,
            confidence=1.0,
            created_at=now,
            expires_at=now + report_ttl(report_type),
            active=True,
        )
        db.add(report)
        db.flush()

        if report_type == ReportType.SPOTS_AVAILABLE:
            adjust_occupancy(db, zone_id, -SPOTS_AVAILABLE_RELEASE, VehicleType.CAR, commit=False)
        elif report_type == ReportType.FULL:
            mark_full(db, zone_id, commit=False)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(report)
    logger.info(f"[REPORTS] {report_type.value} on zone {zone_id} (expires {report.expires_at:%H:%M:%S})")
    return report


def list_active_reports(db: Session, now: Optional[datetime] = None) -> list[Report]:
    """Reports still in force, newest first."""
    now = now or utcnow()
    return (
        db.query(Report)
        .options(joinedload(Report.zone))
        .filter(Report.active.is_(True), Report.expires_at > now)
        .order_by(Report.created_at.desc())
        .all()
    )


def report_feed(db: Session, limit: int = 50) -> list[Report]:
    """Most recent reports regardless of expiry — admin monitoring feed."""
    return (
        db.query(Report)
        .options(joinedload(Report.zone))
        .order_by(Report.created_at.desc())
        .limit(limit)
        .all()
    )


def deactivate_report(db: Session, report_id: str) -> Report:
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise NotFound(f"Report '{report_id}' not found")
    report.active = False
    db.commit()
    db.refresh(report)
    logger.info(f"[REPORTS] Report {report_id} deactivated")
    return report
