import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from campusboard.api.deps import get_current_admin
from campusboard.api.push_admin import run_broadcast
from campusboard.core.errors import PushError
from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.models.announcement import CATEGORY_IMPORTANT, Announcement
from campusboard.models.calendar_event import CalendarEvent
from campusboard.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    Category,
)
from campusboard.text import format_notification_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["announcements"])


def _get_or_404(db: Session, announcement_id: int) -> Announcement:
    announcement = db.query(Announcement).filter(Announcement.id == announcement_id).first()
    if not announcement:
        raise HTTPException(status_code=404, detail="Announcement not found")
    return announcement


@router.get("", response_model=list[AnnouncementResponse])
async def list_announcements(
    category: Category | None = None,
    db: Session = Depends(get_db),
) -> list[AnnouncementResponse]:
    """Pinned announcements first, then newest first."""
    query = db.query(Announcement)
    if category:
        query = query.filter(Announcement.category == category)
    announcements = query.order_by(
        Announcement.is_pinned.desc(),
        Announcement.created_at.desc(),
        Announcement.id.desc(),
    ).all()
    return [AnnouncementResponse.model_validate(a) for a in announcements]


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(announcement_id: int, db: Session = Depends(get_db)) -> AnnouncementResponse:
    return AnnouncementResponse.model_validate(_get_or_404(db, announcement_id))


@router.post("")
async def create_announcement(
    data: AnnouncementCreate,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    """
    Publish an announcement, optionally pushing it to every subscriber.

    A failed push never undoes the announcement; the typed push error is
    returned next to it instead.
    """
    announcement = Announcement(
        title=data.title,
        content=data.content,
        category=data.category,
        is_pinned=data.is_pinned,
        author_email=admin.email,
    )
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    push = None
    if data.send_push:
        try:
            result = await run_broadcast(
                db,
                title=f"[Notice] {announcement.title}",
                # Image-only content strips to nothing; the title keeps the body non-empty
                body=format_notification_body(announcement.content, 100) or announcement.title,
                url=f"/announcements/{announcement.id}",
                require_interaction=announcement.category == CATEGORY_IMPORTANT,
                admin_email=admin.email,
            )
            push = {
                "sent": result.sent,
                "errors": result.errors,
                "total": result.total,
                "notificationId": result.notification_id,
            }
        except PushError as exc:
            logger.warning("Announcement %s published but push failed: %s", announcement.id, exc)
            push = exc.to_dict()

    return {
        "announcement": AnnouncementResponse.model_validate(announcement).model_dump(mode="json"),
        "push": push,
    }


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> AnnouncementResponse:
    announcement = _get_or_404(db, announcement_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(announcement, field, value)
    db.commit()
    db.refresh(announcement)
    return AnnouncementResponse.model_validate(announcement)


@router.post("/{announcement_id}/pin", response_model=AnnouncementResponse)
async def toggle_pin(
    announcement_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> AnnouncementResponse:
    announcement = _get_or_404(db, announcement_id)
    announcement.is_pinned = not announcement.is_pinned
    db.commit()
    db.refresh(announcement)
    return AnnouncementResponse.model_validate(announcement)


@router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    announcement = _get_or_404(db, announcement_id)
    db.query(CalendarEvent).filter(CalendarEvent.announcement_id == announcement.id).update(
        {CalendarEvent.announcement_id: None}, synchronize_session=False
    )
    db.delete(announcement)
    db.commit()
