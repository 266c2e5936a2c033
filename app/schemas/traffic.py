from pydantic import BaseModel
from app.utils.metrics import TrafficState


class AccessTrafficOut(BaseModel):
    point: str
    road: str
    current_speed: float
    free_flow_speed: float
    congested: bool
    ratio: float
    state: TrafficState
    queried_ago: str
    synthetic: bool

    class Config:
        from_attributes = True


class TrafficOut(BaseModel):
    access_points: list[AccessTrafficOut]
