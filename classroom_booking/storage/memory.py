import logging
import threading
from contextlib import contextmanager
from itertools import count

from classroom_booking.errors import ValidationError
from classroom_booking.models.enums import BookingStatus, Role
from classroom_booking.models.user import _utcnow
from classroom_booking.schemas.booking import BookingDetailResponse, BookingResponse
from classroom_booking.schemas.room import RoomResponse
from classroom_booking.schemas.user import FacultySummary, UserRecord
from classroom_booking.storage.base import (
    BOOKING_REQUIRED_FIELDS,
    ROOM_REQUIRED_FIELDS,
    USER_REQUIRED_FIELDS,
    Storage,
    missing_fields,
)

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dict-backed store for development and tests.

    Every public method runs under one reentrant lock, and ``booking_guard``
    takes the same lock, so a conflict check and the insert that follows it
    cannot interleave with another writer.
    """

    def __init__(self):
        self._users = {}
        self._rooms = {}
        self._bookings = {}
        self._ids = {"users": count(1), "rooms": count(1), "bookings": count(1)}
        self._lock = threading.RLock()

    @contextmanager
    def booking_guard(self, room_id):
        with self._lock:
            yield

    # users
    def get_user(self, user_id):
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def get_user_by_username(self, username):
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user.model_copy()
        return None

    def get_user_by_email(self, email):
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy()
        return None

    def create_user(self, data):
        missing = missing_fields(data, USER_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        with self._lock:
            if self.get_user_by_username(data["username"]):
                raise ValidationError("Username already exists")
            if self.get_user_by_email(data["email"]):
                raise ValidationError("Email already registered")
            user = UserRecord(
                **{"role": Role.STUDENT, **data},
                id=next(self._ids["users"]),
                created_at=_utcnow(),
            )
            self._users[user.id] = user
            logger.debug(f"Stored user {user.id} ({user.username})")
            return user.model_copy()

    # rooms
    def _room_name_taken(self, name, exclude_id=None):
        return any(
            room.name == name and room.id != exclude_id for room in self._rooms.values()
        )

    def list_rooms(self):
        with self._lock:
            return [room.model_copy() for room in sorted(self._rooms.values(), key=lambda r: r.name)]

    def get_room(self, room_id):
        with self._lock:
            room = self._rooms.get(room_id)
            return room.model_copy() if room else None

    def create_room(self, data):
        missing = missing_fields(data, ROOM_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        with self._lock:
            if self._room_name_taken(data["name"]):
                raise ValidationError("Room name already exists")
            room = RoomResponse(**data, id=next(self._ids["rooms"]), created_at=_utcnow())
            self._rooms[room.id] = room
            return room.model_copy()

    def update_room(self, room_id, data):
        with self._lock:
            existing = self._rooms.get(room_id)
            if not existing:
                return None
            if data.get("name") and self._room_name_taken(data["name"], exclude_id=room_id):
                raise ValidationError("Room name already exists")
            updated = RoomResponse.model_validate({**existing.model_dump(), **data})
            self._rooms[room_id] = updated
            return updated.model_copy()

    def delete_room(self, room_id):
        with self._lock:
            if self._rooms.pop(room_id, None) is None:
                return False
            orphaned = [b.id for b in self._bookings.values() if b.room_id == room_id]
            for booking_id in orphaned:
                del self._bookings[booking_id]
            logger.debug(f"Deleted room {room_id} and {len(orphaned)} bookings")
            return True

    # bookings
    def _with_details(self, booking):
        room = self._rooms.get(booking.room_id)
        faculty = self._users.get(booking.faculty_id)
        if not room or not faculty:
            return None
        return BookingDetailResponse(
            **booking.model_dump(),
            room=room.model_copy(),
            faculty=FacultySummary(id=faculty.id, name=faculty.name, email=faculty.email),
        )

    def _check_references(self, data):
        if "room_id" in data and data["room_id"] not in self._rooms:
            raise ValidationError("Room does not exist")
        if "faculty_id" in data and data["faculty_id"] not in self._users:
            raise ValidationError("User does not exist")

    def list_bookings(self, room_id=None, faculty_id=None, status=None, date_from=None, date_to=None):
        with self._lock:
            bookings = list(self._bookings.values())
            if room_id is not None:
                bookings = [b for b in bookings if b.room_id == room_id]
            if faculty_id is not None:
                bookings = [b for b in bookings if b.faculty_id == faculty_id]
            if status is not None:
                bookings = [b for b in bookings if b.status == status]
            if date_from is not None:
                bookings = [b for b in bookings if b.date >= date_from]
            if date_to is not None:
                bookings = [b for b in bookings if b.date <= date_to]

            detailed = [d for d in (self._with_details(b) for b in bookings) if d is not None]
            return sorted(detailed, key=lambda b: (b.date, b.start_time))

    def get_booking(self, booking_id):
        with self._lock:
            booking = self._bookings.get(booking_id)
            return self._with_details(booking) if booking else None

    def create_booking(self, data):
        missing = missing_fields(data, BOOKING_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        with self._lock:
            self._check_references(data)
            booking = BookingResponse(
                **{"status": BookingStatus.PENDING, **data},
                id=next(self._ids["bookings"]),
                created_at=_utcnow(),
            )
            self._bookings[booking.id] = booking
            return booking.model_copy()

    def update_booking(self, booking_id, data):
        with self._lock:
            existing = self._bookings.get(booking_id)
            if not existing:
                return None
            self._check_references(data)
            updated = BookingResponse.model_validate({**existing.model_dump(), **data})
            self._bookings[booking_id] = updated
            return updated.model_copy()

    def delete_booking(self, booking_id):
        with self._lock:
            return self._bookings.pop(booking_id, None) is not None
