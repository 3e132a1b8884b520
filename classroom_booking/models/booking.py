from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from classroom_booking.db import Base
from classroom_booking.models.user import _utcnow


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    faculty_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_name = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    expected_attendance = Column(Integer, nullable=True)
    special_requirements = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    room = relationship("Room", back_populates="bookings")
    faculty = relationship("User", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_time_range"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')", name="check_booking_status"
        ),
        Index("ix_bookings_room_date", "room_id", "date"),
    )
