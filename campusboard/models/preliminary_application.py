from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from campusboard.database import Base


class PreliminaryApplication(Base):
    """A prospective student's pre-registration for the program."""

    __tablename__ = "preliminary_applications"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(13), nullable=False, unique=True)  # 010-1234-5678
    department = Column(String(100), nullable=False)
    grade = Column(Integer, nullable=False)
    age = Column(Integer, nullable=False)
    gpa = Column(String(20), nullable=False, default="not provided")
    has_startup_item = Column(Boolean, default=False, nullable=False)
    self_introduction = Column(Text, nullable=False, default="")
    ip_address = Column(String(100), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
