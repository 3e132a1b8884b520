import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from classroom_booking.models.enums import BookingStatus
from classroom_booking.schemas.room import RoomResponse
from classroom_booking.schemas.user import FacultySummary
from classroom_booking.utils.validation_helpers import validate_minute_precision


class BookingBase(BaseModel):
    room_id: int
    course_name: str = Field(min_length=1, max_length=120)
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    expected_attendance: Optional[int] = Field(default=None, gt=0)
    special_requirements: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_minutes(cls, value):
        return validate_minute_precision(value)


class BookingCreate(BookingBase):
    # overwritten with the requesting faculty member's id
    faculty_id: Optional[int] = None


class BookingUpdate(BaseModel):
    room_id: Optional[int] = None
    course_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    expected_attendance: Optional[int] = Field(default=None, gt=0)
    special_requirements: Optional[str] = None
    status: Optional[BookingStatus] = None
    faculty_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_minutes(cls, value):
        return validate_minute_precision(value)


class BookingResponse(BookingBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    faculty_id: int
    status: BookingStatus
    created_at: dt.datetime


class BookingDetailResponse(BookingResponse):
    room: RoomResponse
    faculty: FacultySummary
