from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from classroom_booking.models.enums import Role


class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    email: str = Field(max_length=255)
    name: str = Field(min_length=1, max_length=120)
    role: Role = Role.STUDENT

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email")
        return value


class UserCreate(UserBase):
    password: str = Field(min_length=1)
    admin_code: Optional[str] = None


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


class UserRecord(UserResponse):
    """Stored user, credential included. Never returned by the API."""

    hashed_password: str


class FacultySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
