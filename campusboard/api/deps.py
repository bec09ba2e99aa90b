from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.services import auth_service

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AdminUser:
    admin = auth_service.get_admin_from_token(credentials.credentials, db)

    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    return admin


async def get_optional_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: Session = Depends(get_db),
) -> AdminUser | None:
    """Like get_current_admin, but anonymous callers get None instead of an error."""
    if credentials is None:
        return None
    return auth_service.get_admin_from_token(credentials.credentials, db)


def client_ip(request: Request) -> str:
    """Best-effort caller address, honouring reverse-proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""
