import logging
from fastapi import APIRouter, Depends, Response, status
from typing import List
from classroom_booking.errors import NotFoundError, ValidationError
from classroom_booking.schemas.room import RoomCreate, RoomUpdate, RoomResponse
from classroom_booking.schemas.user import UserResponse
from classroom_booking.storage.base import Storage
from classroom_booking.storage.factory import get_storage
from classroom_booking.utils.auth import get_current_user
from classroom_booking.utils.policy import Operation, authorize

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    room: RoomCreate,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(get_current_user),
):
    """
    Create a new classroom.
    Requires admin role.
    """
    authorize(current_user, Operation.MANAGE_ROOMS)
    db_room = storage.create_room(room.model_dump())
    logger.debug(f"Created room {db_room.id} ({db_room.name})")
    return db_room


@router.get("/", response_model=List[RoomResponse])
def get_rooms(storage: Storage = Depends(get_storage)):
    """
    Retrieve a list of all classrooms.
    """
    return storage.list_rooms()


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, storage: Storage = Depends(get_storage)):
    """
    Retrieve a specific classroom by ID.
    """
    room = storage.get_room(room_id)
    if not room:
        raise NotFoundError("Room not found")
    return room


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    room_update: RoomUpdate,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(get_current_user),
):
    """
    Update a classroom's details.
    Requires admin role.
    """
    authorize(current_user, Operation.MANAGE_ROOMS)
    update_data = room_update.model_dump(exclude_unset=True)
    for field in ("name", "capacity"):
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be empty")

    db_room = storage.update_room(room_id, update_data)
    if not db_room:
        raise NotFoundError("Room not found")
    logger.debug(f"Updated room {room_id}: {sorted(update_data)}")
    return db_room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room_id: int,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(get_current_user),
):
    """
    Delete a classroom and every booking made for it.
    Requires admin role.
    """
    authorize(current_user, Operation.MANAGE_ROOMS)
    if not storage.delete_room(room_id):
        raise NotFoundError("Room not found")
    logger.debug(f"Deleted room {room_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
