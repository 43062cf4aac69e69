"""Persisted shapes of shares: a closed union tagged by `type`."""
import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class ShareType(str, enum.Enum):
    SOLO = "solo"
    GROUP = "group"


class SoloShareData(BaseModel):
    type: Literal["solo"] = "solo"
    expire: int = 0
    host: str | None = None
    adoptable: bool = False


class GroupShareData(BaseModel):
    type: Literal["group"] = "group"
    expire: int = 0
    # nickname -> session ID
    hosts: dict[str, str] = Field(default_factory=dict)
    group_pin: int


ShareData = Annotated[Union[SoloShareData, GroupShareData], Field(discriminator="type")]

share_data_adapter = TypeAdapter(ShareData)
