from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    capacity: int = Field(gt=0)
    location: Optional[str] = None

class RoomCreate(RoomBase):
    pass

class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    capacity: Optional[int] = Field(default=None, gt=0)
    location: Optional[str] = None

class RoomResponse(RoomBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
