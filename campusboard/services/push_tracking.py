"""
Open tracking and open-rate reporting for push broadcasts.

Tracking is attached to the user's navigation, so track_open() never raises:
every failure is logged and reported back as a soft success.
"""

import logging
import math
from datetime import datetime, timezone

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from campusboard.config import settings
from campusboard.models.delivery_log import STATUS_OPENED, STATUS_SENT, NotificationDeliveryLog
from campusboard.models.notification import Notification

logger = logging.getLogger(__name__)


def _parse_id(value: object) -> int | None:
    if value is None or value == "" or isinstance(value, (bool, float)):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def open_rate(opened: int, total: int) -> int:
    """Percentage of opened deliveries, rounded half up. 0 when nothing was sent."""
    if total <= 0:
        return 0
    return int(math.floor(opened * 100 / total + 0.5))


def track_open(
    db: Session,
    notification_id: int | str | None,
    subscription_id: int | str | None = None,
) -> dict:
    """Flip the (notification, subscription) delivery row from sent to opened.

    Only rows still in "sent" status are touched, so a repeated call is a
    no-op. The notification's open_count is bumped in place by the number of
    rows that changed.
    """
    nid = _parse_id(notification_id)
    if nid is None:
        return {"success": False, "message": "Notification ID is required"}

    sid = _parse_id(subscription_id)
    now = datetime.now(timezone.utc)

    try:
        opened = 0
        if sid is not None:
            opened = (
                db.query(NotificationDeliveryLog)
                .filter(
                    NotificationDeliveryLog.notification_id == nid,
                    NotificationDeliveryLog.subscription_id == sid,
                    NotificationDeliveryLog.status == STATUS_SENT,
                )
                .update(
                    {
                        NotificationDeliveryLog.status: STATUS_OPENED,
                        NotificationDeliveryLog.opened_at: now,
                    },
                    synchronize_session=False,
                )
            )
        if opened:
            db.query(Notification).filter(Notification.id == nid).update(
                {Notification.open_count: Notification.open_count + opened},
                synchronize_session=False,
            )
        db.commit()
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        logger.warning("Open tracking failed for notification %s: %s", nid, exc)
        return {
            "success": True,
            "message": "Tracked (with error)",
            "error": str(exc),
            "timestamp": now.isoformat(),
        }

    logger.debug("Tracked open notification=%s subscription=%s rows=%s", nid, sid, opened)
    return {
        "success": True,
        "message": "Notification open tracked successfully",
        "openCount": opened,
    }


def calculate_open_rates(db: Session, limit: int | None = None) -> dict[int, int]:
    """Open rate per notification for the most recent ``limit`` broadcasts.

    The denominator is the number of delivery-log rows, or the stored
    sent_count when a notification has none.
    """
    limit = limit or settings.OPEN_RATE_WINDOW
    notifications = (
        db.query(Notification.id, Notification.sent_count)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    if not notifications:
        return {}

    ids = [n.id for n in notifications]
    rows = (
        db.query(
            NotificationDeliveryLog.notification_id,
            func.count(NotificationDeliveryLog.id),
            func.sum(case((NotificationDeliveryLog.status == STATUS_OPENED, 1), else_=0)),
        )
        .filter(NotificationDeliveryLog.notification_id.in_(ids))
        .group_by(NotificationDeliveryLog.notification_id)
        .all()
    )
    counts = {notification_id: (total, opened or 0) for notification_id, total, opened in rows}

    rates: dict[int, int] = {}
    for n in notifications:
        total, opened = counts.get(n.id, (0, 0))
        rates[n.id] = open_rate(opened, total or n.sent_count or 0)
    return rates
