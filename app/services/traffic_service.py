"""
Traffic state for the campus access points.

Cache strategy (per access point):
  1. Snapshot in DB queried less than TRAFFIC_CACHE_TTL_SECONDS ago → serve it.
  2. Otherwise ask the traffic provider and upsert the snapshot.
  3. No API key or any provider failure → serve the point's synthetic speed
     pair and upsert it too, so reads within the TTL stay consistent.

Provider failures and failed snapshot writes never reach the caller: the
worst case is synthetic or uncached data.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import ExternalProviderFailure, ProviderNotConfigured
from app.models.traffic_snapshot import TrafficSnapshot
from app.services.traffic_provider import FlowReading, TomTomTrafficProvider
from app.utils.clock import utcnow
from app.utils.logger import get_logger
from app.utils.metrics import TrafficState, relative_age, traffic_state

logger = get_logger(__name__)

DEFAULT_SYNTHETIC = (30.0, 50.0)


@dataclass
class AccessTraffic:
    point: str
    road: str
    current_speed: float
    free_flow_speed: float
    congested: bool
    ratio: float
    state: TrafficState
    queried_ago: str
    synthetic: bool


class TrafficCache:
    def __init__(self, db: Session, provider: Optional[TomTomTrafficProvider] = None,
                 access_points: Optional[dict] = None, ttl_seconds: Optional[int] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.provider = provider or TomTomTrafficProvider.from_settings()
        self.access_points = access_points if access_points is not None else settings.ACCESS_POINTS
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.TRAFFIC_CACHE_TTL_SECONDS
        self.clock = clock

    async def get_traffic(self, point_id: str, force_refresh: bool = False) -> Optional[AccessTraffic]:
        """Traffic for one access point, or None if the point is not configured."""
        access = self.access_points.get(point_id)
        if access is None:
            return None
        now = self.clock()

        if not force_refresh:
            cached = self.db.get(TrafficSnapshot, point_id)
            if cached and (now - cached.queried_at).total_seconds() < self.ttl_seconds:
                return self._build(point_id, access, cached.current_speed, cached.free_flow_speed,
                                   relative_age(cached.queried_at, now), synthetic=False)

        try:
            reading = await self.provider.fetch(access["lat"], access["lng"])
        except ProviderNotConfigured:
            logger.debug(f"[TRAFFIC] {point_id}: no API key — serving synthetic data")
            return self._fallback(point_id, access, now)
        except ExternalProviderFailure as e:
            logger.warning(f"[TRAFFIC] {point_id}: provider failed ({e}) — serving synthetic data")
            return self._fallback(point_id, access, now)
        except Exception as e:
            logger.error(f"[TRAFFIC] {point_id}: unexpected provider error: {e}", exc_info=True)
            return self._fallback(point_id, access, now)

        self._upsert(point_id, reading, now)
        logger.info(f"[TRAFFIC] {point_id}: {reading.current_speed}/{reading.free_flow_speed} km/h (live)")
        return self._build(point_id, access, reading.current_speed, reading.free_flow_speed,
                           "now", synthetic=False)

    async def get_all_traffic(self, force_refresh: bool = False) -> list[AccessTraffic]:
        """All configured access points, fetched concurrently."""
        return list(await asyncio.gather(
            *(self.get_traffic(point_id, force_refresh) for point_id in self.access_points)
        ))

    def _fallback(self, point_id: str, access: dict, now: datetime) -> AccessTraffic:
        current, free_flow = access.get("synthetic", DEFAULT_SYNTHETIC)
        self._upsert(point_id, FlowReading(current, free_flow), now)
        return self._build(point_id, access, current, free_flow, "now", synthetic=True)

    def _upsert(self, point_id: str, reading: FlowReading, now: datetime):
        values = {
            "current_speed": reading.current_speed,
            "free_flow_speed": reading.free_flow_speed,
            "congested": traffic_state(reading.current_speed, reading.free_flow_speed).congested,
            "confidence": reading.confidence,
            "queried_at": now,
        }
        snapshot = self.db.get(TrafficSnapshot, point_id)
        if snapshot is None:
            self.db.add(TrafficSnapshot(point=point_id, **values))
        else:
            for key, value in values.items():
                setattr(snapshot, key, value)
        try:
            try:
                self.db.commit()
            except IntegrityError:
                # Another request inserted this point first; last writer wins
                self.db.rollback()
                self.db.query(TrafficSnapshot).filter(TrafficSnapshot.point == point_id).update(values)
                self.db.commit()
        except SQLAlchemyError as e:
            # A failed cache write never fails the read
            self.db.rollback()
            logger.error(f"[TRAFFIC] {point_id}: snapshot not stored: {e}")

    @staticmethod
    def _build(point_id: str, access: dict, current: float, free_flow: float,
               queried_ago: str, synthetic: bool) -> AccessTraffic:
        assessment = traffic_state(current, free_flow)
        return AccessTraffic(
            point=point_id,
            road=access["road"],
            current_speed=current,
            free_flow_speed=free_flow,
            congested=assessment.congested,
            ratio=assessment.ratio,
            state=assessment.state,
            queried_ago=queried_ago,
            synthetic=synthetic,
        )
