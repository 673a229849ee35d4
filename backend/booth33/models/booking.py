"""
Booking model: a user's reservation of studio time.

Key design decisions:
- Column names match the hosted `bookings` table (`session_type`, `time`, ...)
  so existing rows can be migrated as-is
- `time` holds a slot label from the fixed daily grid; the row occupies
  `duration` consecutive slots from there, cut off at closing time
- Cancellation is a status, never a delete
- Composite index on (date, status) serves the per-day availability scan
"""

from sqlalchemy import Column, Date, Index, Integer, Numeric, String, Text, ForeignKey, CheckConstraint

from booth33.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    session_type = Column(String(20), nullable=False)  # music, podcast
    date = Column(Date, nullable=False)
    time_slot = Column("time", String(8), nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("session_type IN ('music', 'podcast')", name="check_booking_session_type"),
        CheckConstraint("duration IN (1, 2, 3, 4, 8)", name="check_booking_duration"),
        CheckConstraint("price >= 0", name="check_booking_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        Index("ix_bookings_date_status", "date", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, user={self.user_id}, date={self.date}, "
            f"time={self.time_slot}, duration={self.duration}, status={self.status})>"
        )
