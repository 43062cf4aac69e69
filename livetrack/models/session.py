"""Persisted shape of a broadcasting session."""
from pydantic import BaseModel, Field

# (lat, lon, time, accuracy, speed); the last two may be None.
Point = tuple[float, float, float, float | None, float | None]


class SessionData(BaseModel):
    expire: int = 0
    interval: float | None = None
    targets: list[str] = Field(default_factory=list)
    points: list[Point] = Field(default_factory=list)
