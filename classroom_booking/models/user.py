from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from classroom_booking.db import Base


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="student")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    bookings = relationship("Booking", back_populates="faculty")

    __table_args__ = (
        CheckConstraint("role IN ('student', 'faculty', 'admin')", name="check_user_role"),
    )
