from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from classroom_booking import config
from classroom_booking.errors import NotAuthenticatedError
from classroom_booking.schemas.user import UserResponse
from classroom_booking.storage.base import Storage
from classroom_booking.storage.factory import get_storage

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# HTTP Bearer scheme for JWT token; missing credentials are reported as 401 below
bearer_scheme = HTTPBearer(
    scheme_name="JWT",
    description="Enter 'Bearer <your_jwt_token>'. Obtain the token via /auth/login.",
    auto_error=False,
)


def verify_password(plain_password, hashed_password):
    """Verify a plain password against a hashed password."""
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(data: dict):
    """Create a JWT access token with an expiration time."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)
    return encoded_jwt


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> Optional[UserResponse]:
    """Resolve the bearer token to a user, or None when no token was sent."""
    if credentials is None:
        return None
    try:
        payload = jwt.decode(credentials.credentials, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as e:
        raise NotAuthenticatedError(f"Could not validate credentials: {str(e)}")

    username = payload.get("sub")
    if username is None:
        raise NotAuthenticatedError("Could not validate credentials")
    user = storage.get_user_by_username(username)
    if user is None:
        raise NotAuthenticatedError("Could not validate credentials")
    return UserResponse.model_validate(user.model_dump())


def get_current_user(user: Optional[UserResponse] = Depends(get_optional_user)) -> UserResponse:
    """Verify JWT token from Bearer header and return the current user."""
    if user is None:
        raise NotAuthenticatedError()
    return user
