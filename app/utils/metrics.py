"""
Pure occupancy and traffic metrics. No DB access, no I/O.
Every threshold used to classify a zone or an access point lives here.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ZoneStatus(str, Enum):
    AVAILABLE = "available"
    MODERATE = "moderate"
    CRITICAL = "critical"
    FULL = "full"


class TrafficState(str, Enum):
    FLUID = "fluid"
    MODERATE = "moderate"
    CONGESTED = "congested"


# Inclusive lower bounds, checked top-down
ZONE_STATUS_THRESHOLDS = (
    (100.0, ZoneStatus.FULL),
    (90.0, ZoneStatus.CRITICAL),
    (70.0, ZoneStatus.MODERATE),
)

FLUID_RATIO = 0.70
MODERATE_RATIO = 0.50


@dataclass(frozen=True)
class TrafficAssessment:
    state: TrafficState
    ratio: float        # current / free-flow, 2 decimals
    congested: bool     # True for both MODERATE and CONGESTED


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percentage(occupied: int, capacity: int) -> float:
    """Occupancy percentage with one decimal. 0 for zones without capacity."""
    if capacity == 0:
        return 0
    return _round_half_up((occupied / capacity) * 1000) / 10


def zone_status(pct: float) -> ZoneStatus:
    for threshold, status in ZONE_STATUS_THRESHOLDS:
        if pct >= threshold:
            return status
    return ZoneStatus.AVAILABLE


def traffic_state(current_speed: float, free_flow_speed: float) -> TrafficAssessment:
    """
    Classify an access point from its speed ratio.

    ratio >= 0.70 → fluid, 0.50-0.70 → moderate, below → congested.
    The `congested` flag is the coarse binary signal: ratio < 0.70.
    """
    ratio = current_speed / free_flow_speed if free_flow_speed > 0 else 1
    if ratio >= FLUID_RATIO:
        state = TrafficState.FLUID
    elif ratio >= MODERATE_RATIO:
        state = TrafficState.MODERATE
    else:
        state = TrafficState.CONGESTED
    return TrafficAssessment(
        state=state,
        ratio=_round_half_up(ratio * 100) / 100,
        congested=ratio < FLUID_RATIO,
    )


def relative_age(moment: datetime, now: datetime) -> str:
    """Human-readable age: '45s', '3 min', '2h'."""
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h"
