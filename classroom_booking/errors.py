"""Errors raised by the booking core.

Each error carries the HTTP status the API answers with, so routers can let
them propagate and a single exception handler renders the response.
"""
from fastapi import status


class BookingAppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(BookingAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid data"


class NotAuthenticatedError(BookingAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"


class AuthorizationError(BookingAppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFoundError(BookingAppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ConflictError(BookingAppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Room is already booked for the selected time slot"
