from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from campusboard.api.deps import get_current_admin, get_optional_admin
from campusboard.config import settings
from campusboard.database import get_db
from campusboard.models.admin_user import AdminUser
from campusboard.schemas.admin import AdminCreate, AdminLogin, AdminResponse
from campusboard.schemas.token import Token
from campusboard.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(admin: AdminUser) -> Token:
    access_token = auth_service.create_access_token(
        admin,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(
        access_token=access_token,
        token_type="bearer",
        admin=AdminResponse.model_validate(admin),
    )


@router.post("/register", response_model=Token)
async def register(
    admin_in: AdminCreate,
    current_admin: AdminUser | None = Depends(get_optional_admin),
    db: Session = Depends(get_db),
) -> Token:
    """
    Create an admin account.

    The very first account bootstraps the deployment and needs no token.
    Every later account must be created by an existing admin.
    """
    if auth_service.admin_count(db) > 0 and current_admin is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an existing admin can create admin accounts",
        )
    if db.query(AdminUser).filter(AdminUser.email == admin_in.email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    admin = AdminUser(
        email=admin_in.email,
        display_name=admin_in.display_name,
        hashed_password=auth_service.hash_password(admin_in.password),
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    return _issue_token(admin)


@router.post("/login", response_model=Token)
async def login(credentials: AdminLogin, db: Session = Depends(get_db)) -> Token:
    admin = auth_service.authenticate(credentials.email, credentials.password, db)

    if admin is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin account is inactive",
        )

    return _issue_token(admin)


@router.get("/me", response_model=AdminResponse)
async def get_me(current_admin: AdminUser = Depends(get_current_admin)) -> AdminResponse:
    return AdminResponse.model_validate(current_admin)
