import logging
import secrets
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from classroom_booking import config
from classroom_booking.errors import AuthorizationError, NotAuthenticatedError
from classroom_booking.models.enums import Role
from classroom_booking.schemas.user import Token, UserCreate, UserResponse
from classroom_booking.storage.base import Storage
from classroom_booking.storage.factory import get_storage
from classroom_booking.utils.auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def _admin_code_ok(supplied):
    expected = config.ADMIN_SIGNUP_CODE
    if not expected or not supplied:
        return False
    return secrets.compare_digest(supplied, expected)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, storage: Storage = Depends(get_storage)):
    """
    Register a new account.

    Admin accounts need the configured admin signup code.
    """
    if user.role == Role.ADMIN and not _admin_code_ok(user.admin_code):
        logger.error(f"Refused admin registration for {user.username}")
        raise AuthorizationError("Admin registration requires a valid admin code")

    db_user = storage.create_user(
        {
            "username": user.username.strip(),
            "email": user.email,
            "name": user.name.strip(),
            "role": user.role,
            "hashed_password": get_password_hash(user.password),
        }
    )
    logger.info(f"Registered user {db_user.id} ({db_user.username}) as {db_user.role.value}")
    return UserResponse.model_validate(db_user.model_dump())


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), storage: Storage = Depends(get_storage)):
    """
    Exchange username and password for a bearer token.
    """
    user = storage.get_user_by_username(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.error(f"Failed login for {form_data.username}")
        raise NotAuthenticatedError("Incorrect username or password")

    access_token = create_access_token({"sub": user.username, "role": user.role.value})
    logger.debug(f"Issued token for user {user.id}")
    return Token(access_token=access_token)


@router.get("/me", response_model=UserResponse)
def me(current_user: UserResponse = Depends(get_current_user)):
    """
    Return the authenticated user.
    """
    return current_user
