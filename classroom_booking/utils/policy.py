"""Role-based access policy.

One table answers who may do what. ``OWNER`` grants access only when the
actor owns the booking in question.
"""
import logging
from enum import Enum
from typing import Optional

from classroom_booking.errors import AuthorizationError, NotAuthenticatedError
from classroom_booking.models.enums import Role

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    READ_ROOMS = "read_rooms"
    MANAGE_ROOMS = "manage_rooms"
    LIST_BOOKINGS = "list_bookings"
    READ_BOOKING = "read_booking"
    CREATE_BOOKING = "create_booking"
    UPDATE_BOOKING = "update_booking"
    CANCEL_BOOKING = "cancel_booking"
    CONFIRM_BOOKING = "confirm_booking"
    PURGE_BOOKING = "purge_booking"


class Rule(str, Enum):
    ALLOW = "allow"
    OWNER = "owner"
    DENY = "deny"


ALLOW, OWNER, DENY = Rule.ALLOW, Rule.OWNER, Rule.DENY

POLICY = {
    #                              student  faculty  admin
    Operation.READ_ROOMS:      dict(zip(Role, (ALLOW, ALLOW, ALLOW))),
    Operation.MANAGE_ROOMS:    dict(zip(Role, (DENY, DENY, ALLOW))),
    Operation.LIST_BOOKINGS:   dict(zip(Role, (ALLOW, ALLOW, ALLOW))),
    Operation.READ_BOOKING:    dict(zip(Role, (ALLOW, OWNER, ALLOW))),
    Operation.CREATE_BOOKING:  dict(zip(Role, (DENY, ALLOW, DENY))),
    Operation.UPDATE_BOOKING:  dict(zip(Role, (DENY, OWNER, ALLOW))),
    Operation.CANCEL_BOOKING:  dict(zip(Role, (DENY, OWNER, ALLOW))),
    Operation.CONFIRM_BOOKING: dict(zip(Role, (DENY, DENY, ALLOW))),
    Operation.PURGE_BOOKING:   dict(zip(Role, (DENY, DENY, ALLOW))),
}

DENIAL_MESSAGES = {
    Operation.MANAGE_ROOMS: "Admin access required",
    Operation.CREATE_BOOKING: "Faculty access required",
    Operation.CONFIRM_BOOKING: "Admin access required",
    Operation.PURGE_BOOKING: "Admin access required",
}


def is_allowed(operation: Operation, role: Role, is_owner: bool = False) -> bool:
    rule = POLICY[operation].get(Role(role), DENY)
    if rule == ALLOW:
        return True
    return rule == OWNER and is_owner


def authorize(actor, operation: Operation, owner_id: Optional[int] = None):
    """Raise unless ``actor`` may perform ``operation`` (on an entity owned by ``owner_id``)."""
    if actor is None:
        raise NotAuthenticatedError()
    is_owner = owner_id is not None and owner_id == actor.id
    if not is_allowed(operation, actor.role, is_owner):
        logger.error(f"User {actor.id} ({actor.role}) denied {operation.value}")
        raise AuthorizationError(DENIAL_MESSAGES.get(operation, "Access denied"))


def booking_list_scope(actor, requested_faculty_id: Optional[int]) -> Optional[int]:
    """Faculty filter to apply when ``actor`` lists bookings.

    Students see every booking, so their filter is dropped. Faculty default
    to their own bookings and may not ask for someone else's.
    """
    authorize(actor, Operation.LIST_BOOKINGS)
    role = Role(actor.role)
    if role == Role.STUDENT:
        return None
    if role == Role.FACULTY:
        if requested_faculty_id is None:
            return actor.id
        if requested_faculty_id != actor.id:
            raise AuthorizationError("Cannot access other users' bookings")
    return requested_faculty_id
