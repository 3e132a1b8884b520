"""Booking lifecycle: validation, conflict checks and status transitions.

``BookingManager`` is the only code path that writes bookings. Status moves
pending -> confirmed -> cancelled (or straight from pending to cancelled) and
never leaves cancelled.
"""
import logging
from typing import Optional

from classroom_booking.errors import ConflictError, NotFoundError, ValidationError
from classroom_booking.models.enums import BookingStatus, Role
from classroom_booking.utils.conflicts import find_conflict
from classroom_booking.utils.policy import Operation, authorize, booking_list_scope
from classroom_booking.utils.validation_helpers import validate_attendance, validate_time_range

logger = logging.getLogger(__name__)

TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}

NON_NULLABLE_FIELDS = ("room_id", "course_name", "date", "start_time", "end_time", "faculty_id", "status")


def check_transition(current, target):
    current, target = BookingStatus(current), BookingStatus(target)
    if current == target:
        return
    if target not in TRANSITIONS[current]:
        raise ValidationError(f"Cannot change booking status from {current.value} to {target.value}")


class BookingManager:
    def __init__(self, storage):
        self.storage = storage

    def _get_or_404(self, booking_id):
        booking = self.storage.get_booking(booking_id)
        if not booking:
            logger.error(f"Booking not found: {booking_id}")
            raise NotFoundError("Booking not found")
        return booking

    def _room_or_404(self, room_id):
        room = self.storage.get_room(room_id)
        if not room:
            logger.error(f"Room not found: {room_id}")
            raise NotFoundError("Room not found")
        return room

    def _ensure_free(self, room_id, on_date, start_time, end_time, exclude_id=None):
        conflict = find_conflict(self.storage, room_id, on_date, start_time, end_time, exclude_id)
        if conflict:
            logger.error(
                f"Overlapping booking {conflict.id} for room_id: {room_id}, "
                f"{on_date} {start_time}-{end_time}"
            )
            raise ConflictError()

    def request_booking(self, actor, payload: dict):
        authorize(actor, Operation.CREATE_BOOKING)
        data = dict(payload)
        data.pop("status", None)
        # bookings are always made for oneself
        data["faculty_id"] = actor.id

        room = self._room_or_404(data.get("room_id"))
        validate_time_range(data["start_time"], data["end_time"])
        validate_attendance(data.get("expected_attendance"), room.capacity)

        with self.storage.booking_guard(room.id):
            self._ensure_free(room.id, data["date"], data["start_time"], data["end_time"])
            booking = self.storage.create_booking({**data, "status": BookingStatus.PENDING})

        logger.debug(f"Created booking {booking.id} for user {actor.id} in room {room.id}")
        return booking

    def update_booking(self, actor, booking_id: int, partial: dict):
        booking = self._get_or_404(booking_id)
        authorize(actor, Operation.UPDATE_BOOKING, owner_id=booking.faculty_id)

        changes = dict(partial)
        if Role(actor.role) != Role.ADMIN:
            changes.pop("faculty_id", None)
        for field in NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be empty")

        new_status = changes.pop("status", None)
        if new_status is not None:
            check_transition(booking.status, new_status)
            if new_status == BookingStatus.CONFIRMED and booking.status != BookingStatus.CONFIRMED:
                authorize(actor, Operation.CONFIRM_BOOKING)
        if booking.status == BookingStatus.CANCELLED and changes:
            raise ValidationError("Cancelled bookings cannot be modified")

        if "faculty_id" in changes:
            owner = self.storage.get_user(changes["faculty_id"])
            if not owner or Role(owner.role) != Role.FACULTY:
                raise ValidationError("Bookings can only be assigned to faculty members")

        merged = {**booking.model_dump(), **changes}
        room = self._room_or_404(merged["room_id"])
        validate_time_range(merged["start_time"], merged["end_time"])
        validate_attendance(merged.get("expected_attendance"), room.capacity)

        if new_status is not None:
            changes["status"] = new_status
        final_status = BookingStatus(new_status or booking.status)

        with self.storage.booking_guard(room.id):
            if final_status != BookingStatus.CANCELLED:
                self._ensure_free(
                    room.id, merged["date"], merged["start_time"], merged["end_time"], exclude_id=booking_id
                )
            updated = self.storage.update_booking(booking_id, changes)

        logger.debug(f"Updated booking {booking_id}: {sorted(changes)}")
        return updated

    def cancel_booking(self, actor, booking_id: int):
        booking = self._get_or_404(booking_id)
        authorize(actor, Operation.CANCEL_BOOKING, owner_id=booking.faculty_id)
        if booking.status == BookingStatus.CANCELLED:
            logger.debug(f"Booking {booking_id} already cancelled")
            return booking

        updated = self.storage.update_booking(booking_id, {"status": BookingStatus.CANCELLED})
        logger.debug(f"Cancelled booking {booking_id} by user {actor.id}")
        return updated

    def confirm_booking(self, actor, booking_id: int):
        booking = self._get_or_404(booking_id)
        authorize(actor, Operation.CONFIRM_BOOKING, owner_id=booking.faculty_id)
        if booking.status == BookingStatus.CONFIRMED:
            return booking
        check_transition(booking.status, BookingStatus.CONFIRMED)

        updated = self.storage.update_booking(booking_id, {"status": BookingStatus.CONFIRMED})
        logger.debug(f"Confirmed booking {booking_id} by user {actor.id}")
        return updated

    def purge_booking(self, actor, booking_id: int) -> bool:
        booking = self._get_or_404(booking_id)
        authorize(actor, Operation.PURGE_BOOKING, owner_id=booking.faculty_id)
        if booking.status != BookingStatus.CANCELLED:
            raise ValidationError("Only cancelled bookings can be purged")
        deleted = self.storage.delete_booking(booking_id)
        logger.debug(f"Purged booking {booking_id}")
        return deleted

    def get_booking(self, actor, booking_id: int):
        booking = self._get_or_404(booking_id)
        authorize(actor, Operation.READ_BOOKING, owner_id=booking.faculty_id)
        return booking

    def list_bookings(
        self,
        actor,
        room_id: Optional[int] = None,
        faculty_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        date_from=None,
        date_to=None,
    ):
        faculty_id = booking_list_scope(actor, faculty_id)
        bookings = self.storage.list_bookings(
            room_id=room_id,
            faculty_id=faculty_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )
        logger.debug(f"Retrieved {len(bookings)} bookings for user {actor.id}")
        return bookings
