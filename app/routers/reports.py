"""Crowdsourced reports — submission, active list and admin feed."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.schemas.report import ReportCreate, ReportOut
from app.services.report_service import (deactivate_report, list_active_reports,
                                         report_feed, submit_report)

router = APIRouter()


@router.get("/reports", response_model=list[ReportOut], summary="Reports currently in force")
def get_active_reports(db: Session = Depends(get_db)):
    return list_active_reports(db)


@router.get("/reports/feed", response_model=list[ReportOut], summary="Latest reports, expired included")
def get_report_feed(limit: int = Query(default=settings.REPORT_FEED_LIMIT, ge=1, le=500),
                    db: Session = Depends(get_db)):
    return report_feed(db, limit)


@router.post("/reports", response_model=ReportOut, status_code=status.HTTP_201_CREATED,
             summary="Submit a crowdsourced report")
def create_report(body: ReportCreate, db: Session = Depends(get_db)):
    """
    404 if the zone does not exist, 429 when the submitter exceeded the rate limit.
    `spots_available` frees 5 car spots; `full` marks the zone's car spots full.
    """
    return submit_report(db, body.zone_id, body.report_type, submitter_id=body.submitter_id,
                         lat=body.lat, lng=body.lng)


@router.post("/reports/{report_id}/deactivate", response_model=ReportOut, summary="Admin — retire a report")
def retire_report(report_id: str, db: Session = Depends(get_db)):
    return deactivate_report(db, report_id)
