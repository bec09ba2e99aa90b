from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campusboard.database import Base


class Notification(Base):
    """One broadcast attempt and its aggregate delivery counts."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    icon = Column(String(500), nullable=True)
    url = Column(String(1000), nullable=True)
    tag = Column(String(100), nullable=True)
    require_interaction = Column(Boolean, default=False, nullable=False)

    # sent_count is the size of the active-subscription snapshot taken before
    # fan-out; success/error are written once fan-out finishes.
    sent_count = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    error_count = Column(Integer, default=0, nullable=False)
    open_count = Column(Integer, default=0, nullable=False)

    admin_email = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    delivery_logs = relationship(
        "NotificationDeliveryLog",
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
