from sqlalchemy.orm import relationship
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from classroom_booking.db import Base
from classroom_booking.models.user import _utcnow


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    location = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    bookings = relationship(
        "Booking", back_populates="room", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_room_capacity_positive"),
    )
