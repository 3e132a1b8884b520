import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Response, status
from classroom_booking.models.enums import BookingStatus
from classroom_booking.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    BookingUpdate,
)
from classroom_booking.schemas.user import UserResponse
from classroom_booking.storage.base import Storage
from classroom_booking.storage.factory import get_storage
from classroom_booking.utils.auth import get_current_user
from classroom_booking.utils.lifecycle import BookingManager

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


def get_manager(storage: Storage = Depends(get_storage)) -> BookingManager:
    return BookingManager(storage)


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description="Request a classroom for a course session. Faculty only; the booking starts as pending.",
)
def create_booking(
    booking: BookingCreate,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    """
    Request a classroom booking.

    - **room_id**: ID of the room to book.
    - **course_name**: Course the room is booked for.
    - **date**: Day of the booking (e.g., 2024-01-10).
    - **start_time** / **end_time**: Time range (e.g., 09:00 to 10:30), end after start.
    - **expected_attendance**: (Optional) Must fit in the room.
    - **special_requirements**: (Optional) Free text.

    Returns 409 if the room is already booked for an overlapping time.
    """
    logger.debug(f"Booking request from user {current_user.username} for room_id: {booking.room_id}")
    return manager.request_booking(current_user, booking.model_dump())


@router.get(
    "/",
    response_model=List[BookingDetailResponse],
    summary="List bookings",
    description="Bookings ordered by date and start time. Faculty see their own unless they filter by their id.",
)
def get_bookings(
    room_id: Optional[int] = None,
    faculty_id: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    """
    List bookings matching every supplied filter.

    - **room_id**, **faculty_id**, **status**: exact matches.
    - **date_from** / **date_to**: inclusive date range.
    """
    return manager.list_bookings(
        current_user,
        room_id=room_id,
        faculty_id=faculty_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/{booking_id}", response_model=BookingDetailResponse, summary="Get a booking by ID")
def get_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    return manager.get_booking(current_user, booking_id)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
    description="Edit a booking. Owner or admin; only admins may reassign it or confirm it.",
)
def update_booking(
    booking_id: int,
    booking_update: BookingUpdate,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    return manager.update_booking(current_user, booking_id, booking_update.model_dump(exclude_unset=True))


@router.post("/{booking_id}/confirm", response_model=BookingResponse, summary="Confirm a booking")
def confirm_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    return manager.confirm_booking(current_user, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel a booking")
def cancel_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    return manager.cancel_booking(current_user, booking_id)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel a booking",
    description="Bookings are never removed here; they are marked cancelled.",
)
def delete_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    manager.cancel_booking(current_user, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{booking_id}/purge",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a cancelled booking",
    description="Hard delete of an already cancelled booking. Admin only.",
)
def purge_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_manager),
    current_user: UserResponse = Depends(get_current_user),
):
    manager.purge_booking(current_user, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
