"""Persistence contract shared by the in-memory and SQL backends.

Records handed out are pydantic copies; mutating them never touches the
stored entity. Lookups return ``None`` for absent ids instead of raising.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional

from classroom_booking.schemas.booking import BookingDetailResponse, BookingResponse
from classroom_booking.schemas.room import RoomResponse
from classroom_booking.schemas.user import UserRecord

USER_REQUIRED_FIELDS = ("username", "email", "hashed_password", "name")
ROOM_REQUIRED_FIELDS = ("name", "capacity")
BOOKING_REQUIRED_FIELDS = (
    "room_id",
    "faculty_id",
    "course_name",
    "date",
    "start_time",
    "end_time",
)


def missing_fields(data: dict, required) -> List[str]:
    return [field for field in required if data.get(field) is None]


class Storage(ABC):
    # users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def create_user(self, data: dict) -> UserRecord: ...

    # rooms
    @abstractmethod
    def list_rooms(self) -> List[RoomResponse]: ...

    @abstractmethod
    def get_room(self, room_id: int) -> Optional[RoomResponse]: ...

    @abstractmethod
    def create_room(self, data: dict) -> RoomResponse: ...

    @abstractmethod
    def update_room(self, room_id: int, data: dict) -> Optional[RoomResponse]: ...

    @abstractmethod
    def delete_room(self, room_id: int) -> bool:
        """Delete a room together with all of its bookings."""

    # bookings
    @abstractmethod
    def list_bookings(
        self,
        room_id: Optional[int] = None,
        faculty_id: Optional[int] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[BookingDetailResponse]:
        """Bookings matching every given filter, ordered by (date, start_time)."""

    @abstractmethod
    def get_booking(self, booking_id: int) -> Optional[BookingDetailResponse]: ...

    @abstractmethod
    def create_booking(self, data: dict) -> BookingResponse: ...

    @abstractmethod
    def update_booking(self, booking_id: int, data: dict) -> Optional[BookingResponse]: ...

    @abstractmethod
    def delete_booking(self, booking_id: int) -> bool:
        """Hard delete. The API only reaches this for cancelled bookings."""

    @contextmanager
    def booking_guard(self, room_id: int) -> Iterator[None]:
        """Hold while checking conflicts and writing a booking for ``room_id``."""
        yield
