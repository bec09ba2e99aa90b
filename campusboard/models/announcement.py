from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from campusboard.database import Base

CATEGORY_GENERAL = "general"
CATEGORY_IMPORTANT = "important"
CATEGORY_ACADEMIC = "academic"
CATEGORY_EVENT = "event"
VALID_CATEGORIES = (CATEGORY_GENERAL, CATEGORY_IMPORTANT, CATEGORY_ACADEMIC, CATEGORY_EVENT)


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)  # HTML from the admin editor
    category = Column(String(20), nullable=False, default=CATEGORY_GENERAL)
    is_pinned = Column(Boolean, default=False, nullable=False)
    author_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
