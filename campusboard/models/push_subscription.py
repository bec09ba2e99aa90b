from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campusboard.database import Base


class PushSubscription(Base):
    """A browser push endpoint. Deactivated rather than deleted when it goes away."""

    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(1000), nullable=False, unique=True)
    p256dh = Column(String(255), nullable=False)  # Client public key
    auth = Column(String(255), nullable=False)  # Auth secret
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    delivery_logs = relationship(
        "NotificationDeliveryLog",
        back_populates="subscription",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
