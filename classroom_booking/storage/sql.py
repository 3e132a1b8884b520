import logging
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from classroom_booking.errors import ValidationError
from classroom_booking.models.booking import Booking
from classroom_booking.models.room import Room
from classroom_booking.models.user import User
from classroom_booking.schemas.booking import BookingDetailResponse, BookingResponse
from classroom_booking.schemas.room import RoomResponse
from classroom_booking.schemas.user import UserRecord
from classroom_booking.storage.base import (
    BOOKING_REQUIRED_FIELDS,
    ROOM_REQUIRED_FIELDS,
    USER_REQUIRED_FIELDS,
    Storage,
    missing_fields,
)

logger = logging.getLogger(__name__)


def _enum_values(data: dict) -> dict:
    return {key: getattr(value, "value", value) for key, value in data.items()}


class SqlStorage(Storage):
    """SQLAlchemy-backed store working on one request-scoped session."""

    def __init__(self, db: Session):
        self.db = db
        self._guarded = False

    def _commit(self, duplicate_message="Duplicate value"):
        if self._guarded:
            # the guard commits once the whole check-then-write sequence is done
            self.db.flush()
            return
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error: {e.orig}")
            raise ValidationError(duplicate_message)

    @contextmanager
    def booking_guard(self, room_id):
        if self.db.get_bind().dialect.name == "sqlite":
            # SQLite ignores FOR UPDATE and the driver runs SELECTs outside a
            # transaction, so take the write lock before the conflict read.
            self.db.commit()
            self.db.connection().exec_driver_sql("BEGIN IMMEDIATE")
        else:
            self.db.query(Room).filter(Room.id == room_id).with_for_update().first()
        self._guarded = True
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error: {e.orig}")
            raise ValidationError("Booking violates a database constraint")
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._guarded = False

    # users
    def _user(self, query):
        user = query.first()
        return UserRecord.model_validate(user) if user else None

    def get_user(self, user_id):
        return self._user(self.db.query(User).filter(User.id == user_id))

    def get_user_by_username(self, username):
        return self._user(self.db.query(User).filter(User.username == username))

    def get_user_by_email(self, email):
        return self._user(self.db.query(User).filter(User.email == email))

    def create_user(self, data):
        missing = missing_fields(data, USER_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if self.get_user_by_username(data["username"]):
            raise ValidationError("Username already exists")
        if self.get_user_by_email(data["email"]):
            raise ValidationError("Email already registered")

        db_user = User(**_enum_values(data))
        self.db.add(db_user)
        self._commit("Username or email already exists")
        self.db.refresh(db_user)
        return UserRecord.model_validate(db_user)

    # rooms
    def list_rooms(self):
        rooms = self.db.query(Room).order_by(Room.name).all()
        return [RoomResponse.model_validate(room) for room in rooms]

    def get_room(self, room_id):
        room = self.db.query(Room).filter(Room.id == room_id).first()
        return RoomResponse.model_validate(room) if room else None

    def create_room(self, data):
        missing = missing_fields(data, ROOM_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if self.db.query(Room).filter(Room.name == data["name"]).first():
            raise ValidationError("Room name already exists")

        db_room = Room(**data)
        self.db.add(db_room)
        self._commit("Room name already exists")
        self.db.refresh(db_room)
        return RoomResponse.model_validate(db_room)

    def update_room(self, room_id, data):
        db_room = self.db.query(Room).filter(Room.id == room_id).first()
        if not db_room:
            return None
        if data.get("name"):
            clash = self.db.query(Room).filter(Room.name == data["name"], Room.id != room_id).first()
            if clash:
                raise ValidationError("Room name already exists")

        for key, value in data.items():
            setattr(db_room, key, value)
        self._commit("Room name already exists")
        self.db.refresh(db_room)
        return RoomResponse.model_validate(db_room)

    def delete_room(self, room_id):
        db_room = self.db.query(Room).filter(Room.id == room_id).first()
        if not db_room:
            return False
        # relationship cascade removes the room's bookings
        self.db.delete(db_room)
        self.db.commit()
        return True

    # bookings
    def _booking_query(self):
        return self.db.query(Booking).options(
            joinedload(Booking.room), joinedload(Booking.faculty)
        )

    def list_bookings(self, room_id=None, faculty_id=None, status=None, date_from=None, date_to=None):
        q = self._booking_query()
        if room_id is not None:
            q = q.filter(Booking.room_id == room_id)
        if faculty_id is not None:
            q = q.filter(Booking.faculty_id == faculty_id)
        if status is not None:
            q = q.filter(Booking.status == getattr(status, "value", status))
        if date_from is not None:
            q = q.filter(Booking.date >= date_from)
        if date_to is not None:
            q = q.filter(Booking.date <= date_to)

        rows = q.order_by(Booking.date.asc(), Booking.start_time.asc()).all()
        return [BookingDetailResponse.model_validate(row) for row in rows]

    def get_booking(self, booking_id):
        row = self._booking_query().filter(Booking.id == booking_id).first()
        return BookingDetailResponse.model_validate(row) if row else None

    def _check_references(self, data):
        if "room_id" in data and not self.db.get(Room, data["room_id"]):
            raise ValidationError("Room does not exist")
        if "faculty_id" in data and not self.db.get(User, data["faculty_id"]):
            raise ValidationError("User does not exist")

    def create_booking(self, data):
        missing = missing_fields(data, BOOKING_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        self._check_references(data)

        db_booking = Booking(**_enum_values(data))
        self.db.add(db_booking)
        self._commit("Booking violates a database constraint")
        self.db.refresh(db_booking)
        return BookingResponse.model_validate(db_booking)

    def update_booking(self, booking_id, data):
        db_booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not db_booking:
            return None
        self._check_references(data)

        for key, value in _enum_values(data).items():
            setattr(db_booking, key, value)
        self._commit("Booking violates a database constraint")
        self.db.refresh(db_booking)
        return BookingResponse.model_validate(db_booking)

    def delete_booking(self, booking_id):
        db_booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not db_booking:
            return False
        self.db.delete(db_booking)
        self.db.commit()
        return True
