"""Pydantic schemas for the sharing endpoints."""
import enum

from pydantic import BaseModel, Field

from livetrack.models.session import Point
from livetrack.models.share import ShareType


class ShareMode(str, enum.Enum):
    ALONE = "alone"
    GROUP = "group"
    JOIN = "join"


class CreateRequest(BaseModel):
    """Start broadcasting: alone, as the first host of a new group, or joining a group by PIN."""
    mode: ShareMode = ShareMode.ALONE
    duration: int = Field(..., description="Sharing window in seconds")
    interval: float = Field(..., description="Seconds between location pushes")
    nickname: str | None = Field(None, max_length=64)
    pin: int | None = None
    adoptable: bool = False


class CreateResponse(BaseModel):
    session_id: str
    share_id: str
    view_link: str
    group_pin: int | None = None


class PointPush(BaseModel):
    session_id: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    time: float
    acc: float | None = None
    spd: float | None = None

    def as_point(self) -> Point:
        return (self.lat, self.lon, self.time, self.acc, self.spd)


class PushResponse(BaseModel):
    status: str = "ok"
    shares: list[str]


class StopRequest(BaseModel):
    session_id: str


class AdoptRequest(BaseModel):
    """Add the host of an adoptable solo share to the group with this PIN."""
    pin: int
    share_id: str
    nickname: str = Field(..., min_length=1, max_length=64)


class AdoptResponse(BaseModel):
    share_id: str
    hosts: list[str]


class ShareView(BaseModel):
    """What viewers poll. Solo shares list points; group shares map nickname -> points."""
    type: ShareType
    expire: int
    server_time: int
    interval: float
    points: list[Point] | dict[str, list[Point]]
