"""
Centralized auth service — all admin auth decisions flow through here.

No JWT decoding should happen outside this module.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from campusboard.config import settings
from campusboard.models.admin_user import AdminUser

# ── Password ──────────────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


# ── Token ─────────────────────────────────────────────────────────────────────


def create_access_token(admin: AdminUser, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT for an admin account.

    The 'sub' claim carries the admin's email, which is also the identity
    recorded on every broadcast they send.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": admin.email,
        "admin_id": admin.id,
        "iss": settings.SERVER_DOMAIN,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT. Returns payload dict or None on failure."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


# ── Admin Lookup ──────────────────────────────────────────────────────────────


def get_admin_from_token(token: str, db: Session) -> AdminUser | None:
    """
    Resolve a JWT to an active AdminUser.

    Tokens issued for another deployment (different 'iss') are rejected even
    when they share a signing key.
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    if payload.get("iss") != settings.SERVER_DOMAIN:
        return None

    admin_id = payload.get("admin_id")
    if admin_id is None:
        return None
    return db.query(AdminUser).filter(AdminUser.id == int(admin_id), AdminUser.is_active == True).first()  # noqa: E712


def authenticate(email: str, password: str, db: Session) -> AdminUser | None:
    """Return the admin for valid credentials, else None."""
    admin = db.query(AdminUser).filter(AdminUser.email == email).first()
    if not admin or not verify_password(password, admin.hashed_password):
        return None
    return admin


def admin_count(db: Session) -> int:
    return db.query(AdminUser).count()
