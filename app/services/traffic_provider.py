"""
TomTom Traffic Flow client.

Endpoint: GET {base}/traffic/services/4/flowSegmentData/relative0/10/json?key=...&point=lat,lng
Returns the current and free-flow speed of the road segment closest to a point.
Every failure (no key, timeout, network, non-2xx, unexpected body) is raised as
ExternalProviderFailure; traffic_service turns it into synthetic data.
"""

import json
from dataclasses import dataclass
from typing import Optional
import httpx
from app.config import settings
from app.exceptions import ExternalProviderFailure, ProviderNotConfigured

FLOW_SEGMENT_PATH = "/traffic/services/4/flowSegmentData/relative0/10/json"


@dataclass
class FlowReading:
    current_speed: float
    free_flow_speed: float
    confidence: float = 1.0


class TomTomTrafficProvider:
    def __init__(self, api_key: Optional[str], base_url: str = "https://api.tomtom.com",
                 timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "TomTomTrafficProvider":
        return cls(settings.TRAFFIC_API_KEY, settings.TRAFFIC_API_BASE_URL,
                   settings.TRAFFIC_API_TIMEOUT_SECONDS)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, lat: float, lng: float) -> FlowReading:
        if not self.configured:
            raise ProviderNotConfigured("TRAFFIC_API_KEY is not set")

        url = f"{self.base_url}{FLOW_SEGMENT_PATH}"
        params = {"key": self.api_key, "point": f"{lat},{lng}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ExternalProviderFailure(f"{type(e).__name__}: {e}") from e

        if response.status_code != 200:
            raise ExternalProviderFailure(f"HTTP {response.status_code}")

        segment = _flow_segment(response.content)
        current = segment.get("currentSpeed")
        free_flow = segment.get("freeFlowSpeed")
        if not isinstance(current, (int, float)) or not isinstance(free_flow, (int, float)):
            raise ExternalProviderFailure("flowSegmentData is missing speed fields")

        confidence = segment.get("confidence")
        if not isinstance(confidence, (int, float)):
            confidence = 1.0
        return FlowReading(float(current), float(free_flow), float(confidence))


def _flow_segment(body: bytes) -> dict:
    try:
        data = json.loads(body.decode("utf-8", errors="replace"))
    except ValueError as e:
        raise ExternalProviderFailure("Response body is not JSON") from e
    segment = data.get("flowSegmentData") if isinstance(data, dict) else None
    if not isinstance(segment, dict):
        raise ExternalProviderFailure("Response has no flowSegmentData object")
    return segment
