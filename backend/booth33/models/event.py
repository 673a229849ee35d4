"""
Studio event model with attendance tracking.

Key design decisions:
- Events sit on the same slot grid as bookings and block those slots outright
- `current_attendees` is denormalized (avoids COUNT over event_rsvps) and kept
  equal to the number of RSVP rows by the event service
- `version` column enables optimistic locking so the last seat can't be
  handed out twice
- Deleting an event removes it and its RSVPs; there is no soft status
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer, Numeric, String, Text,
    UniqueConstraint,
)

from booth33.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    time_slot = Column("time", String(8), nullable=False)
    duration = Column(Integer, nullable=False)
    max_attendees = Column(Integer, nullable=False)
    current_attendees = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    auto_post_to_feed = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint(
            "type IN ('open-mic', 'listening-party', 'workshop', 'private')",
            name="check_event_type",
        ),
        CheckConstraint("current_attendees >= 0", name="check_attendees_non_negative"),
        CheckConstraint("current_attendees <= max_attendees", name="check_attendees_lte_max"),
        CheckConstraint("max_attendees > 0", name="check_max_attendees_positive"),
        CheckConstraint("duration > 0", name="check_event_duration_positive"),
        Index("ix_events_date", "date"),
    )

    @property
    def is_full(self) -> bool:
        return self.current_attendees >= self.max_attendees

    @property
    def spots_left(self) -> int:
        return max(0, self.max_attendees - self.current_attendees)

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, name={self.name}, date={self.date}, "
            f"attendees={self.current_attendees}/{self.max_attendees})>"
        )


class EventRSVP(Base, TimestampMixin):
    __tablename__ = "event_rsvps"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_rsvp_user"),
    )

    def __repr__(self) -> str:
        return f"<EventRSVP(event={self.event_id}, user={self.user_id})>"
