"""
Studio sessions: the delivery record created after a booking is completed.

Key design decisions:
- At most one session per booking (unique `booking_id`); sessions created by
  hand have no booking
- Status follows the file list: draft with no files, ready_to_deliver once
  files exist, delivered when the admin releases it to the user's library
"""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from booth33.db.base import Base, TimestampMixin


class StudioSession(Base, TimestampMixin):
    __tablename__ = "studio_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, unique=True)
    name = Column(String(255), nullable=False)
    session_type = Column(String(20), nullable=False)
    session_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    files = relationship(
        "SessionFile",
        back_populates="session",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="SessionFile.id",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'ready_to_deliver', 'delivered')",
            name="check_studio_session_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<StudioSession(id={self.id}, booking={self.booking_id}, status={self.status})>"


class SessionFile(Base):
    __tablename__ = "session_files"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer, ForeignKey("studio_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(20), nullable=False, default="audio")
    file_size = Column(String(20), nullable=True)
    duration = Column(String(10), nullable=True)
    status = Column(String(20), nullable=False, default="ready")
    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    session = relationship("StudioSession", back_populates="files")

    def __repr__(self) -> str:
        return f"<SessionFile(id={self.id}, session={self.session_id}, name={self.file_name})>"
