from datetime import time
from classroom_booking.errors import ValidationError


def validate_minute_precision(value):
    if value and (value.second != 0 or value.microsecond != 0):
        raise ValueError("Times must be given in whole minutes (e.g., 09:30)")
    return value


def to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


def validate_time_range(start_time: time, end_time: time):
    if to_minutes(end_time) <= to_minutes(start_time):
        raise ValidationError("End time must be after start time")


def validate_attendance(expected_attendance, capacity):
    if expected_attendance is None:
        return
    if expected_attendance > capacity:
        raise ValidationError(
            f"Expected attendance ({expected_attendance}) exceeds room capacity ({capacity})"
        )
