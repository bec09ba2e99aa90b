"""
Push subscription lifecycle: subscribe (upsert by endpoint), unsubscribe
(soft delete) and the admin bulk-cleanup actions.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from campusboard.config import settings
from campusboard.models.delivery_log import NotificationDeliveryLog
from campusboard.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)

CLEAR_INACTIVE = "clear-inactive"
CLEAR_OLD = "clear-old"
CLEAR_ALL = "clear-all"
MARK_INACTIVE = "mark-inactive"
CLEANUP_ACTIONS = (CLEAR_INACTIVE, CLEAR_OLD, CLEAR_ALL, MARK_INACTIVE)


def _apply(sub: PushSubscription, *, p256dh: str, auth: str, user_agent: str | None, ip_address: str | None) -> None:
    sub.p256dh = p256dh
    sub.auth = auth
    sub.user_agent = user_agent
    sub.ip_address = ip_address
    sub.is_active = True
    sub.updated_at = datetime.now(timezone.utc)


def upsert_subscription(
    db: Session,
    *,
    endpoint: str,
    p256dh: str,
    auth: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> PushSubscription:
    """Store a subscription, overwriting keys and reactivating a known endpoint."""
    fields = {"p256dh": p256dh, "auth": auth, "user_agent": user_agent, "ip_address": ip_address}

    sub = db.query(PushSubscription).filter_by(endpoint=endpoint).first()
    if sub:
        _apply(sub, **fields)
    else:
        sub = PushSubscription(endpoint=endpoint)
        _apply(sub, **fields)
        db.add(sub)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent subscribe for the same endpoint
        db.rollback()
        sub = db.query(PushSubscription).filter_by(endpoint=endpoint).one()
        _apply(sub, **fields)
        db.commit()
    db.refresh(sub)
    return sub


def deactivate_subscription(db: Session, endpoint: str) -> bool:
    """Mark an endpoint inactive. Returns False when the endpoint is unknown."""
    updated = (
        db.query(PushSubscription)
        .filter(PushSubscription.endpoint == endpoint)
        .update(
            {PushSubscription.is_active: False, PushSubscription.updated_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    db.commit()
    return bool(updated)


def subscription_stats(db: Session) -> dict:
    total = db.query(PushSubscription).count()
    active = db.query(PushSubscription).filter(PushSubscription.is_active == True).count()  # noqa: E712
    return {"active": active, "inactive": total - active, "total": total}


def _cleanup_query(db: Session, action: str, now: datetime) -> Query:
    query = db.query(PushSubscription)
    if action == CLEAR_INACTIVE:
        return query.filter(PushSubscription.is_active == False)  # noqa: E712
    if action == CLEAR_OLD:
        cutoff = now - timedelta(days=settings.SUBSCRIPTION_MAX_AGE_DAYS)
        return query.filter(PushSubscription.created_at < cutoff)
    if action == CLEAR_ALL:
        return query
    if action == MARK_INACTIVE:
        return query.filter(PushSubscription.is_active == True)  # noqa: E712
    raise ValueError(f"Invalid cleanup action: {action}")


def cleanup_subscriptions(db: Session, action: str, *, dry_run: bool = False) -> int:
    """
    Run one bulk cleanup action and return the number of affected rows.

    clear-inactive  delete every inactive subscription
    clear-old       delete subscriptions created more than SUBSCRIPTION_MAX_AGE_DAYS ago
    clear-all       delete every subscription
    mark-inactive   deactivate every active subscription

    Deletions also remove the delivery-log rows of the deleted subscriptions.
    With dry_run the matching rows are only counted.
    """
    now = datetime.now(timezone.utc)
    query = _cleanup_query(db, action, now)

    if dry_run:
        return query.count()

    if action == MARK_INACTIVE:
        affected = query.update(
            {PushSubscription.is_active: False, PushSubscription.updated_at: now},
            synchronize_session=False,
        )
    else:
        doomed = [row.id for row in query.with_entities(PushSubscription.id)]
        if doomed:
            db.query(NotificationDeliveryLog).filter(NotificationDeliveryLog.subscription_id.in_(doomed)).delete(
                synchronize_session=False
            )
            db.query(PushSubscription).filter(PushSubscription.id.in_(doomed)).delete(synchronize_session=False)
        affected = len(doomed)
    db.commit()
    return affected
