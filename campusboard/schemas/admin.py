from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class AdminBase(BaseModel):
    email: EmailStr
    display_name: str | None = Field(None, max_length=50)


class AdminCreate(AdminBase):
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one number")
        if not any(c in "!@#$%^&*()_+-=[]{}|;:,.<>?" for c in v):
            raise ValueError("Password must contain at least one special character")
        return v


class AdminLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()


class AdminResponse(AdminBase):
    id: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
