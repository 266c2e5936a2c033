"""
GET /health — backend, database and traffic-data status for the admin dashboard.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.models.traffic_snapshot import TrafficSnapshot
from app.models.zone import Zone
from app.utils.clock import utcnow
from app.utils.metrics import relative_age

router = APIRouter()


def _provider_status() -> str:
    if not settings.TRAFFIC_API_KEY:
        return "synthetic"
    try:
        resp = requests.head(settings.TRAFFIC_API_BASE_URL, timeout=3)
    except requests.exceptions.RequestException as e:
        return f"unreachable: {type(e).__name__}"
    return "live" if resp.status_code < 500 else f"http_{resp.status_code}"


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    - `database`: "ok" or the connection error
    - `traffic_provider`: "live", "synthetic" (no TRAFFIC_API_KEY), "http_5xx" or "unreachable: ..."
    - `access_points`: age of the last stored snapshot per access point, None if never queried
    """
    now = utcnow()
    result = {
        "status": "ok",
        "timestamp": now.isoformat(),
        "backend": "ok",
        "database": "unknown",
        "active_zones": None,
        "traffic_provider": _provider_status(),
        "access_points": {point: None for point in settings.ACCESS_POINTS},
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["active_zones"] = db.query(Zone).filter(Zone.active.is_(True)).count()
        for snapshot in db.query(TrafficSnapshot).all():
            if snapshot.point in result["access_points"]:
                result["access_points"][snapshot.point] = relative_age(snapshot.queried_at, now)
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if result["traffic_provider"].startswith("unreachable"):
        result["status"] = "degraded"
    return result
