# Campus Smart Parking — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.zone import Zone                               # noqa
from app.models.report import Report, ReportSubmitter          # noqa
from app.models.traffic_snapshot import TrafficSnapshot        # noqa
