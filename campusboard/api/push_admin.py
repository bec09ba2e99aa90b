"""
Admin push endpoints — broadcast composer, reporting and cleanup.

Every route here requires an admin bearer token.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from campusboard.api.deps import get_current_admin
from campusboard.core.errors import PushError
from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.models.delivery_log import STATUS_OPENED, NotificationDeliveryLog
from campusboard.models.notification import Notification
from campusboard.schemas.push import (
    BroadcastRequest,
    CleanupRequest,
    DeleteNotificationsRequest,
    DeliveryLogResponse,
    NotificationResponse,
)
from campusboard.services import push_service, push_tracking, subscriptions
from campusboard.services.notifications import send_broadcast_summary
from campusboard.services.push_service import BroadcastResult, VapidConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/push", tags=["push-admin"])

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache", "Expires": "0"}


async def run_broadcast(
    db: Session,
    *,
    title: str,
    body: str,
    admin_email: str | None,
    icon: str | None = None,
    url: str | None = None,
    tag: str | None = None,
    require_interaction: bool = False,
) -> BroadcastResult:
    """Send a broadcast with the current VAPID settings.

    Anything unexpected is re-raised as a typed PushError (INTERNAL_ERROR).
    """
    try:
        result = await push_service.send_broadcast(
            db,
            VapidConfig.from_settings(),
            title=title,
            body=body,
            icon=icon,
            url=url,
            tag=tag,
            require_interaction=require_interaction,
            admin_email=admin_email,
        )
    except (PushError, ValueError):
        raise
    except Exception as exc:
        logger.exception("Push broadcast failed")
        raise PushError(str(exc)) from exc

    await send_broadcast_summary(title, admin_email, result)
    return result


@router.post("/send")
async def send(
    data: BroadcastRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Broadcast a notification to every active subscription."""
    result = await run_broadcast(
        db,
        title=data.title,
        body=data.body,
        icon=data.icon,
        url=data.url,
        tag=data.tag,
        require_interaction=data.require_interaction,
        admin_email=data.admin_email or admin.email,
    )
    if result.notification_id is None:
        return {"message": "No active subscriptions found", "sent": 0, "errors": 0, "total": 0, "notificationId": None}
    return {
        "message": "Push notifications sent",
        "sent": result.sent,
        "errors": result.errors,
        "total": result.total,
        "notificationId": result.notification_id,
    }


@router.get("/config-check")
async def config_check(admin: AdminUser = Depends(get_current_admin)) -> dict:
    return push_service.check_push_config()


@router.get("/open-rates")
async def open_rates(
    response: Response,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Open rate (0-100) for each of the most recent notifications."""
    rates = push_tracking.calculate_open_rates(db)
    response.headers.update(_NO_CACHE)
    return {
        "success": True,
        "openRates": rates,
        "notificationCount": len(rates),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    limit: int = 20,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> list[NotificationResponse]:
    """Broadcast history, newest first."""
    limit = max(1, min(limit, 100))
    notifications = (
        db.query(Notification).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/notifications/{notification_id}/logs")
async def notification_logs(
    notification_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Every delivery-log row of one broadcast, newest first."""
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    logs = (
        db.query(NotificationDeliveryLog)
        .filter(NotificationDeliveryLog.notification_id == notification_id)
        .order_by(NotificationDeliveryLog.sent_at.desc(), NotificationDeliveryLog.id.desc())
        .all()
    )
    opened = sum(1 for log in logs if log.status == STATUS_OPENED)
    return {
        "notificationId": notification_id,
        "totalLogs": len(logs),
        "openedCount": opened,
        "openRate": push_tracking.open_rate(opened, len(logs) or notification.sent_count),
        "deliveryLogs": [DeliveryLogResponse.model_validate(log).model_dump() for log in logs],
    }


@router.delete("/notifications")
async def delete_notifications(
    data: DeleteNotificationsRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Delete broadcasts by id, together with their delivery logs."""
    db.query(NotificationDeliveryLog).filter(NotificationDeliveryLog.notification_id.in_(data.ids)).delete(
        synchronize_session=False
    )
    deleted = db.query(Notification).filter(Notification.id.in_(data.ids)).delete(synchronize_session=False)
    db.commit()
    logger.info("NOTIFICATIONS_DELETED | admin=%s ids=%s deleted=%s", admin.email, data.ids, deleted)
    return {
        "success": True,
        "deletedCount": deleted,
        "message": f"Successfully deleted {deleted} notification(s)",
    }


@router.get("/subscriptions/stats")
async def get_subscription_stats(
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    return subscriptions.subscription_stats(db)


@router.post("/subscriptions/cleanup")
async def cleanup(
    data: CleanupRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """
    Bulk subscription cleanup. These actions cannot be undone, so the caller
    must send confirm=true; dryRun=true reports the affected count instead.
    """
    if not data.dry_run and not data.confirm:
        raise HTTPException(status_code=400, detail="Cleanup must be confirmed with confirm=true")

    affected = subscriptions.cleanup_subscriptions(db, data.action, dry_run=data.dry_run)
    if not data.dry_run:
        logger.warning("SUBSCRIPTION_CLEANUP | action=%s admin=%s affected=%s", data.action, admin.email, affected)

    stats = subscriptions.subscription_stats(db)
    return {
        "success": True,
        "action": data.action,
        "dryRun": data.dry_run,
        "affected": affected,
        "message": f"Action '{data.action}' {'would affect' if data.dry_run else 'affected'} {affected} subscription(s)",
        "remainingActiveSubscriptions": stats["active"],
    }
