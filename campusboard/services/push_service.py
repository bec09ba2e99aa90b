"""
Web Push fan-out.

Sends one broadcast to every active subscription through pywebpush and keeps
the bookkeeping tables in step:

  notifications              one row per broadcast, aggregate counts
  notification_delivery_log  one row per (broadcast, subscription)

Subscriptions answering 404/410 are deactivated, never deleted.  Delivery-log
writes are best effort; a failing write is counted by the delivery-log health
signal and otherwise ignored.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusboard.config import Settings, settings
from campusboard.core.errors import PushConfigError, PushDatabaseError, PushTableError
from campusboard.models.delivery_log import STATUS_FAILED, STATUS_SENT, NotificationDeliveryLog
from campusboard.models.notification import Notification
from campusboard.models.push_subscription import PushSubscription
from campusboard.redis import log_health

logger = logging.getLogger(__name__)

# Push-service answers meaning the endpoint will never accept messages again
GONE_STATUS_CODES = (404, 410)

_MIN_KEY_LENGTH = 20
_MISSING_TABLE_MARKERS = ("no such table", "does not exist", "undefinedtable")


@dataclass(frozen=True)
class VapidConfig:
    public_key: str
    private_key: str
    claims_email: str

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "VapidConfig":
        return cls(
            public_key=source.VAPID_PUBLIC_KEY.strip(),
            private_key=source.VAPID_PRIVATE_KEY.strip(),
            claims_email=source.VAPID_CLAIMS_EMAIL.strip(),
        )

    @property
    def has_public_key(self) -> bool:
        return len(self.public_key) > _MIN_KEY_LENGTH

    @property
    def has_private_key(self) -> bool:
        return len(self.private_key) > _MIN_KEY_LENGTH

    @property
    def has_contact(self) -> bool:
        return "@" in self.claims_email

    def problems(self) -> list[str]:
        errors = []
        if not self.has_public_key:
            errors.append("VAPID_PUBLIC_KEY is missing or invalid")
        if not self.has_private_key:
            errors.append("VAPID_PRIVATE_KEY is missing or invalid")
        if not self.has_contact:
            errors.append("VAPID_CLAIMS_EMAIL is missing or invalid")
        return errors

    def validate(self) -> "VapidConfig":
        errors = self.problems()
        if errors:
            raise PushConfigError("; ".join(errors))
        return self

    def claims(self) -> dict:
        # pywebpush writes "aud" and "exp" into the dict it is given, so every
        # send gets a fresh one.
        sub = self.claims_email
        if not sub.startswith("mailto:") and not sub.startswith("https:"):
            sub = f"mailto:{sub}"
        return {"sub": sub}


@dataclass
class BroadcastResult:
    sent: int
    errors: int
    total: int
    notification_id: int | None = None


def check_push_config(source: Settings = settings) -> dict:
    """Report which pieces of push configuration are present and well-formed."""
    config = VapidConfig.from_settings(source)
    errors = config.problems()
    database = bool(source.DATABASE_URL)
    if not database:
        errors.append("DATABASE_URL is missing")
    return {
        "isConfigured": not errors,
        "vapidPublicKey": config.has_public_key,
        "vapidPrivateKey": config.has_private_key,
        "vapidEmail": config.has_contact,
        "database": database,
        "errors": errors,
        "environment": source.ENVIRONMENT,
    }


def build_payload(notification: Notification) -> str:
    return json.dumps(
        {
            "title": notification.title,
            "body": notification.body,
            "icon": notification.icon,
            "badge": settings.PUSH_BADGE,
            "url": notification.url,
            "tag": notification.tag,
            "requireInteraction": notification.require_interaction,
            "primaryKey": notification.id,
            "notificationId": notification.id,
        }
    )


def _status_code(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


def _database_error(exc: SQLAlchemyError) -> PushDatabaseError:
    detail = str(getattr(exc, "orig", None) or exc)
    if any(marker in detail.lower() for marker in _MISSING_TABLE_MARKERS):
        return PushTableError(detail)
    return PushDatabaseError(detail)


async def _write_delivery_log(
    db: Session,
    *,
    notification_id: int,
    subscription_id: int,
    status: str,
    error_message: str | None = None,
) -> None:
    try:
        db.add(
            NotificationDeliveryLog(
                notification_id=notification_id,
                subscription_id=subscription_id,
                status=status,
                error_message=error_message,
            )
        )
        db.commit()
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        logger.warning("Delivery log write failed for subscription %s: %s", subscription_id, exc)
        await log_health.record_failure()


def _deactivate_subscription(db: Session, subscription_id: int) -> None:
    try:
        db.query(PushSubscription).filter(PushSubscription.id == subscription_id).update(
            {PushSubscription.is_active: False}, synchronize_session=False
        )
        db.commit()
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        logger.warning("Could not deactivate push subscription %s: %s", subscription_id, exc)


async def _send_one(
    db: Session,
    config: VapidConfig,
    *,
    notification_id: int,
    subscription_id: int,
    subscription_info: dict,
    payload: str,
) -> bool:
    """Deliver to one subscription. Returns True on success; never raises."""
    try:
        # pywebpush blocks on its HTTP request; keep it off the event loop.
        await asyncio.to_thread(
            webpush,
            subscription_info=subscription_info,
            data=payload,
            vapid_private_key=config.private_key,
            vapid_claims=config.claims(),
        )
    except Exception as exc:
        status_code = _status_code(exc) if isinstance(exc, WebPushException) else None
        logger.warning("Push delivery failed for subscription %s: %s", subscription_id, exc)
        await _write_delivery_log(
            db,
            notification_id=notification_id,
            subscription_id=subscription_id,
            status=STATUS_FAILED,
            error_message=str(exc),
        )
        if status_code in GONE_STATUS_CODES:
            logger.info("Deactivating gone push subscription %s (HTTP %s)", subscription_id, status_code)
            _deactivate_subscription(db, subscription_id)
        return False

    await _write_delivery_log(
        db,
        notification_id=notification_id,
        subscription_id=subscription_id,
        status=STATUS_SENT,
    )
    return True


async def send_broadcast(
    db: Session,
    config: VapidConfig,
    *,
    title: str,
    body: str,
    icon: str | None = None,
    url: str | None = None,
    tag: str | None = None,
    require_interaction: bool = False,
    admin_email: str | None = None,
) -> BroadcastResult:
    """Send one notification to every active subscription.

    Raises PushConfigError before touching the database when ``config`` is
    incomplete, and PushDatabaseError when the subscriptions cannot be loaded
    or the notification record cannot be created. Per-subscription failures
    are recorded, never raised. An empty title or body raises ValueError.
    """
    if not title.strip() or not body.strip():
        raise ValueError("Notification title and body must not be empty")
    config.validate()

    try:
        subscriptions = db.query(PushSubscription).filter(PushSubscription.is_active == True).all()  # noqa: E712
    except SQLAlchemyError as exc:
        db.rollback()
        raise _database_error(exc) from exc

    if not subscriptions:
        return BroadcastResult(sent=0, errors=0, total=0)

    # Snapshot plain values; commits made during fan-out expire ORM instances.
    targets = [
        (sub.id, {"endpoint": sub.endpoint, "keys": {"p256dh": sub.p256dh, "auth": sub.auth}})
        for sub in subscriptions
    ]

    notification = Notification(
        title=title,
        body=body,
        icon=icon or settings.PUSH_DEFAULT_ICON,
        url=url or settings.PUSH_DEFAULT_URL,
        tag=tag or settings.PUSH_DEFAULT_TAG,
        require_interaction=require_interaction,
        admin_email=admin_email,
        sent_count=len(targets),
    )
    try:
        db.add(notification)
        db.commit()
        db.refresh(notification)
    except SQLAlchemyError as exc:
        db.rollback()
        raise _database_error(exc) from exc

    notification_id = notification.id
    payload = build_payload(notification)

    outcomes = await asyncio.gather(
        *(
            _send_one(
                db,
                config,
                notification_id=notification_id,
                subscription_id=subscription_id,
                subscription_info=info,
                payload=payload,
            )
            for subscription_id, info in targets
        )
    )
    success_count = sum(1 for ok in outcomes if ok)
    error_count = len(outcomes) - success_count

    try:
        db.query(Notification).filter(Notification.id == notification_id).update(
            {
                Notification.success_count: success_count,
                Notification.error_count: error_count,
                Notification.sent_at: datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not store delivery counts for notification %s: %s", notification_id, exc)

    logger.info(
        "BROADCAST_SENT | notification=%s admin=%s success=%s errors=%s total=%s",
        notification_id,
        admin_email,
        success_count,
        error_count,
        len(targets),
    )
    return BroadcastResult(
        sent=success_count,
        errors=error_count,
        total=len(targets),
        notification_id=notification_id,
    )
