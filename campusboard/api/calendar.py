import calendar as calendar_lib
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from campusboard.api.deps import get_current_admin
from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.models.announcement import Announcement
from campusboard.models.calendar_event import CalendarEvent
from campusboard.schemas.calendar import (
    CalendarEventCreate,
    CalendarEventResponse,
    CalendarEventUpdate,
    EventType,
)

router = APIRouter(prefix="/calendar", tags=["calendar"])


def _get_or_404(db: Session, event_id: int) -> CalendarEvent:
    event = db.query(CalendarEvent).filter(CalendarEvent.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Calendar event not found")
    return event


def _check_announcement(db: Session, announcement_id: int | None) -> None:
    if announcement_id is None:
        return
    if not db.query(Announcement.id).filter(Announcement.id == announcement_id).first():
        raise HTTPException(status_code=400, detail="Linked announcement does not exist")


def _month_range(year: int, month: int | None) -> tuple[date, date]:
    if month is None:
        return date(year, 1, 1), date(year, 12, 31)
    last_day = calendar_lib.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@router.get("", response_model=list[CalendarEventResponse])
async def list_events(
    year: int | None = Query(None, ge=1900, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    event_type: EventType | None = None,
    db: Session = Depends(get_db),
) -> list[CalendarEventResponse]:
    """
    Events in start-date order. With ``year`` (and optionally ``month``) only
    events overlapping that period are returned, so a multi-day event shows
    up in every month it touches.
    """
    if month is not None and year is None:
        raise HTTPException(status_code=400, detail="month requires year")

    query = db.query(CalendarEvent).options(joinedload(CalendarEvent.announcement))
    if year is not None:
        period_start, period_end = _month_range(year, month)
        query = query.filter(CalendarEvent.start_date <= period_end, CalendarEvent.end_date >= period_start)
    if event_type:
        query = query.filter(CalendarEvent.event_type == event_type)
    events = query.order_by(CalendarEvent.start_date.asc(), CalendarEvent.id.asc()).all()
    return [CalendarEventResponse.model_validate(e) for e in events]


@router.get("/{event_id}", response_model=CalendarEventResponse)
async def get_event(event_id: int, db: Session = Depends(get_db)) -> CalendarEventResponse:
    return CalendarEventResponse.model_validate(_get_or_404(db, event_id))


@router.post("", response_model=CalendarEventResponse)
async def create_event(
    data: CalendarEventCreate,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> CalendarEventResponse:
    _check_announcement(db, data.announcement_id)
    event = CalendarEvent(**data.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    return CalendarEventResponse.model_validate(event)


@router.put("/{event_id}", response_model=CalendarEventResponse)
async def update_event(
    event_id: int,
    data: CalendarEventUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> CalendarEventResponse:
    """Partial update. Sending ``announcement_id: null`` removes the link."""
    event = _get_or_404(db, event_id)
    changes = data.model_dump(exclude_unset=True)
    if "announcement_id" in changes:
        _check_announcement(db, changes["announcement_id"])

    start_date = changes.get("start_date") or event.start_date
    end_date = changes.get("end_date") or event.end_date
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    for field, value in changes.items():
        if value is None and field != "announcement_id":
            continue
        setattr(event, field, value)
    db.commit()
    db.refresh(event)
    return CalendarEventResponse.model_validate(event)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    db.delete(_get_or_404(db, event_id))
    db.commit()
