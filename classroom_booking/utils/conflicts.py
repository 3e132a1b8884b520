"""Room conflict detection.

Bookings are half-open intervals ``[start, end)`` in minutes since midnight,
so a booking ending at 10:00 and one starting at 10:00 do not collide.
"""
from datetime import date, time
from typing import Iterable, Optional

from classroom_booking.models.enums import BookingStatus
from classroom_booking.utils.validation_helpers import to_minutes


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(end_a) > to_minutes(start_b)


def first_overlapping(bookings: Iterable, start_time: time, end_time: time, exclude_id: Optional[int] = None):
    for existing in bookings:
        if existing.status == BookingStatus.CANCELLED or existing.id == exclude_id:
            continue
        if intervals_overlap(start_time, end_time, existing.start_time, existing.end_time):
            return existing
    return None


def find_conflict(storage, room_id: int, on_date: date, start_time: time, end_time: time, exclude_id: Optional[int] = None):
    """Return the first active booking of ``room_id`` on ``on_date`` overlapping the interval."""
    same_day = storage.list_bookings(room_id=room_id, date_from=on_date, date_to=on_date)
    return first_overlapping(same_day, start_time, end_time, exclude_id=exclude_id)


def has_conflict(storage, room_id: int, on_date: date, start_time: time, end_time: time, exclude_id: Optional[int] = None) -> bool:
    return find_conflict(storage, room_id, on_date, start_time, end_time, exclude_id) is not None
