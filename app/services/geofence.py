"""
Client-side geofencing.

GeofenceTracker turns a stream of position samples into events:
  - OccupancyDelta(+1) when the user enters a zone radius, (-1) when leaving it
  - ExternalStuck when the user stays slow (<5 km/h) for 90s inside the campus
    perimeter but outside every zone, i.e. queued on an access road

The tracker does no I/O. GeofenceSession feeds it from an async sample source
and dispatches deltas to the backend, fire-and-forget: a failed call is
dropped and never interrupts tracking.

Zones are checked in the order they were given; with overlapping radii the
first listed zone wins.
"""

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Optional, Union
import httpx
from app.exceptions import ConnectivityFailure
from app.utils.geo import haversine
from app.utils.logger import get_logger

logger = get_logger(__name__)

CAMPUS_CENTER = (6.2, -75.579)
CAMPUS_RADIUS_M = 300.0
ZONE_RADIUS_M = 80.0
STATIONARY_SPEED_MS = 5 / 3.6      # 5 km/h
STATIONARY_SECONDS = 90.0


@dataclass(frozen=True)
class ZoneGeometry:
    id: str
    lat: float
    lng: float
    name: str = ""


@dataclass(frozen=True)
class PositionSample:
    lat: float
    lng: float
    speed: Optional[float]     # m/s, None when the device cannot tell
    accuracy: float            # metres
    timestamp: float           # epoch seconds


@dataclass(frozen=True)
class OccupancyDelta:
    zone_id: str
    delta: int


@dataclass(frozen=True)
class ExternalStuck:
    timestamp: float


TrackerEvent = Union[OccupancyDelta, ExternalStuck]


@dataclass
class TrackingState:
    position: Optional[PositionSample] = None
    inside_campus: bool = False
    current_zone: Optional[ZoneGeometry] = None
    show_external_prompt: bool = False


@dataclass
class TrackerUpdate:
    state: TrackingState
    events: list = field(default_factory=list)


class GeofenceTracker:
    def __init__(self, zones: list[ZoneGeometry], campus_center: tuple = CAMPUS_CENTER,
                 campus_radius_m: float = CAMPUS_RADIUS_M, zone_radius_m: float = ZONE_RADIUS_M,
                 stationary_speed_ms: float = STATIONARY_SPEED_MS,
                 stationary_seconds: float = STATIONARY_SECONDS):
        self.zones = list(zones)
        self.campus_center = campus_center
        self.campus_radius_m = campus_radius_m
        self.zone_radius_m = zone_radius_m
        self.stationary_speed_ms = stationary_speed_ms
        self.stationary_seconds = stationary_seconds

        self.state = TrackingState()
        self.previous_zone_id: Optional[str] = None
        self.stationary_since: Optional[float] = None

    def zone_at(self, lat: float, lng: float) -> Optional[ZoneGeometry]:
        for zone in self.zones:
            if haversine(lat, lng, zone.lat, zone.lng) <= self.zone_radius_m:
                return zone
        return None

    def on_sample(self, sample: PositionSample) -> TrackerUpdate:
        events: list = []

        inside_campus = haversine(sample.lat, sample.lng, *self.campus_center) <= self.campus_radius_m
        zone = self.zone_at(sample.lat, sample.lng)
        zone_id = zone.id if zone else None

        if zone_id != self.previous_zone_id:
            if self.previous_zone_id is not None:
                events.append(OccupancyDelta(self.previous_zone_id, -1))
            if zone_id is not None:
                events.append(OccupancyDelta(zone_id, +1))
        self.previous_zone_id = zone_id

        # Unknown speed counts as moving
        stationary = sample.speed is not None and sample.speed < self.stationary_speed_ms
        if inside_campus and zone is None and stationary:
            if self.stationary_since is None:
                self.stationary_since = sample.timestamp
            elif sample.timestamp - self.stationary_since >= self.stationary_seconds:
                events.append(ExternalStuck(sample.timestamp))
                self.state.show_external_prompt = True
                self.stationary_since = None
        else:
            self.stationary_since = None

        self.state.position = sample
        self.state.inside_campus = inside_campus
        self.state.current_zone = zone
        return TrackerUpdate(state=self.state, events=events)

    def acknowledge_prompt(self):
        """Called by the UI once the external-report prompt has been handled."""
        self.state.show_external_prompt = False


class OccupancyClient:
    """Posts geofence deltas to the backend occupancy-adjust endpoint."""

    def __init__(self, base_url: str, timeout: float = 5.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def adjust(self, zone_id: str, delta: int):
        url = f"{self.base_url}/api/v1/zones/{zone_id}/occupancy/adjust"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json={"delta": delta, "vehicle_type": "car"})
        except httpx.HTTPError as e:
            raise ConnectivityFailure(f"{type(e).__name__}: {e}") from e
        if response.status_code >= 400:
            raise ConnectivityFailure(f"HTTP {response.status_code} adjusting {zone_id}")


class GeofenceSession:
    """
    One tracking session: consumes a sample stream until it ends or the
    session is stopped. stop() also cancels the task blocked in run(), so a
    stalled stream does not keep the session alive; run() then returns
    normally. Occupancy calls run as background tasks and are cancelled,
    not awaited, on stop.
    """

    def __init__(self, tracker: GeofenceTracker, client: OccupancyClient,
                 on_update: Optional[Callable[[TrackerUpdate], None]] = None):
        self.tracker = tracker
        self.client = client
        self.on_update = on_update
        self._pending: set = set()
        self._stopped = False
        self._runner: Optional[asyncio.Task] = None

    async def run(self, samples: AsyncIterator[PositionSample]):
        if self._stopped:
            return
        self._runner = asyncio.current_task()
        try:
            async for sample in samples:
                update = self.tracker.on_sample(sample)
                self._dispatch(update.events)
                if self.on_update:
                    self.on_update(update)
                if self._stopped:
                    break
        except asyncio.CancelledError:
            if self._stopped:
                # Cancelled by stop()
                return
            self.stop()
            raise
        finally:
            self._runner = None

    async def drain(self):
        """Wait for in-flight occupancy calls (scripts and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def stop(self):
        self._stopped = True
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        runner = self._runner
        if runner is None or runner.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None      # called outside the event loop
        if runner is not current:
            runner.cancel()

    def acknowledge_prompt(self):
        self.tracker.acknowledge_prompt()

    def _dispatch(self, events: list):
        for event in events:
            if isinstance(event, OccupancyDelta):
                task = asyncio.create_task(self._send(event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
            elif isinstance(event, ExternalStuck):
                logger.info("[GEOFENCE] Stationary near campus for 90s — prompting external report")

    async def _send(self, event: OccupancyDelta):
        try:
            await self.client.adjust(event.zone_id, event.delta)
        except Exception as e:
            logger.debug(f"[GEOFENCE] Dropped {event.delta:+d} for {event.zone_id}: {e}")
