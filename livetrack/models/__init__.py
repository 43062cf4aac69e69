from livetrack.models.session import Point, SessionData
from livetrack.models.share import GroupShareData, ShareData, ShareType, SoloShareData, share_data_adapter

__all__ = [
    "Point",
    "SessionData",
    "ShareType",
    "SoloShareData",
    "GroupShareData",
    "ShareData",
    "share_data_adapter",
]
