"""
Public Web Push endpoints — called by the browser, no authentication.

GET    /push/vapid-public-key  — return the VAPID public key for frontend subscription
POST   /push/subscribe         — upsert a push subscription keyed by endpoint
DELETE /push/unsubscribe       — deactivate a push subscription
POST   /push/track-open        — record that a delivered notification was opened
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from campusboard.api.deps import client_ip
from campusboard.config import settings
from campusboard.database import get_db
from campusboard.schemas.push import PushSubscribeRequest, TrackOpenRequest, UnsubscribeRequest
from campusboard.services import push_tracking, subscriptions

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key")
async def get_vapid_public_key() -> dict:
    """Return the VAPID public key so the frontend can subscribe."""
    return {"key": settings.VAPID_PUBLIC_KEY}


@router.post("/subscribe")
async def subscribe(
    data: PushSubscribeRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict:
    """Upsert a browser push subscription and reactivate it."""
    sub = subscriptions.upsert_subscription(
        db,
        endpoint=data.endpoint,
        p256dh=data.keys.p256dh,
        auth=data.keys.auth,
        user_agent=request.headers.get("user-agent", "")[:500],
        ip_address=client_ip(request)[:100],
    )
    return {"status": "subscribed", "subscriptionId": sub.id}


@router.delete("/unsubscribe")
async def unsubscribe(data: UnsubscribeRequest, db: Session = Depends(get_db)) -> dict:
    """Mark a push subscription inactive; the row is kept."""
    subscriptions.deactivate_subscription(db, data.endpoint)
    return {"status": "unsubscribed"}


@router.post("/track-open")
async def track_open(request: Request, db: Session = Depends(get_db)) -> dict:
    """Always 200, whatever the body looks like. Malformed ids are answered in-band."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}
    data = TrackOpenRequest.model_validate(payload)
    return push_tracking.track_open(db, data.notification_id, data.subscription_id)
