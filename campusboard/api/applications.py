"""
Preliminary applications: the public pre-registration form and its admin list.

POST   /preliminary-applications  — submit (public)
GET    /preliminary-applications  — list with filters (admin)
DELETE /preliminary-applications  — bulk delete by id (admin)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusboard.api.deps import client_ip, get_current_admin
from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.models.preliminary_application import PreliminaryApplication
from campusboard.schemas.application import ApplicationCreate, ApplicationResponse, DeleteApplicationsRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preliminary-applications", tags=["applications"])


@router.post("")
async def submit_application(data: ApplicationCreate, request: Request, db: Session = Depends(get_db)) -> dict:
    """One application per phone number; a repeat submission is rejected with 409."""
    fields = data.model_dump()
    fields["gpa"] = data.gpa or "not provided"
    application = PreliminaryApplication(
        **fields,
        ip_address=client_ip(request)[:100],
        user_agent=request.headers.get("user-agent", "")[:500],
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="An application with this phone number already exists")

    logger.info("Preliminary application received from %s", data.department)
    return {"success": True, "message": "Application submitted"}


@router.get("", response_model=list[ApplicationResponse])
async def list_applications(
    search: str | None = None,
    department: str | None = None,
    grade: int | None = None,
    has_startup_item: bool | None = None,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> list[ApplicationResponse]:
    """Newest first. ``search`` matches name, email, phone, department and introduction."""
    query = db.query(PreliminaryApplication)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                PreliminaryApplication.name.ilike(pattern),
                PreliminaryApplication.email.ilike(pattern),
                PreliminaryApplication.phone_number.like(pattern),
                PreliminaryApplication.department.ilike(pattern),
                PreliminaryApplication.self_introduction.ilike(pattern),
            )
        )
    if department:
        query = query.filter(PreliminaryApplication.department.ilike(f"%{department}%"))
    if grade is not None:
        query = query.filter(PreliminaryApplication.grade == grade)
    if has_startup_item is not None:
        query = query.filter(PreliminaryApplication.has_startup_item == has_startup_item)

    applications = query.order_by(PreliminaryApplication.created_at.desc(), PreliminaryApplication.id.desc()).all()
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.delete("")
async def delete_applications(
    data: DeleteApplicationsRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> dict:
    deleted = (
        db.query(PreliminaryApplication)
        .filter(PreliminaryApplication.id.in_(data.ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("APPLICATIONS_DELETED | admin=%s ids=%s deleted=%s", admin.email, data.ids, deleted)
    return {"success": True, "deletedCount": deleted}
