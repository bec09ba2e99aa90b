from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campusboard.database import Base

EVENT_SEMESTER = "semester"
EVENT_EXAM = "exam"
EVENT_HOLIDAY = "holiday"
EVENT_APPLICATION = "application"
EVENT_OTHER = "other"
VALID_EVENT_TYPES = (EVENT_SEMESTER, EVENT_EXAM, EVENT_HOLIDAY, EVENT_APPLICATION, EVENT_OTHER)


class CalendarEvent(Base):
    """An entry on the public academic calendar, spanning whole days."""

    __tablename__ = "academic_calendar"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="ck_academic_calendar_dates"),)

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    event_type = Column(String(20), nullable=False, default=EVENT_OTHER)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    is_important = Column(Boolean, default=False, nullable=False)
    # Optional link to the announcement that explains the event
    announcement_id = Column(Integer, ForeignKey("announcements.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    announcement = relationship("Announcement")
