from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campusboard.database import Base

# Valid status values
STATUS_SENT = "sent"
STATUS_FAILED = "failed"
STATUS_OPENED = "opened"
VALID_STATUSES = (STATUS_SENT, STATUS_FAILED, STATUS_OPENED)


class NotificationDeliveryLog(Base):
    """Per-subscription outcome of a single broadcast."""

    __tablename__ = "notification_delivery_log"

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(
        Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscription_id = Column(
        Integer, ForeignKey("push_subscriptions.id", ondelete="CASCADE"), nullable=True, index=True
    )
    # status: "sent" | "failed" | "opened"; sent -> opened happens at most once
    status = Column(String(20), nullable=False, default=STATUS_SENT)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
    opened_at = Column(DateTime(timezone=True), nullable=True)

    notification = relationship("Notification", back_populates="delivery_logs")
    subscription = relationship("PushSubscription", back_populates="delivery_logs")

    __table_args__ = (CheckConstraint("status IN ('sent', 'failed', 'opened')", name="ck_delivery_log_status"),)
