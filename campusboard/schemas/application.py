import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

# Korean mobile numbers, hyphens optional: 010-1234-5678 or 01012345678
_MOBILE_RE = re.compile(r"^010\d{8}$")


class ApplicationCreate(BaseModel):
    name: str = Field(..., max_length=50)
    email: EmailStr
    phone_number: str
    department: str = Field(..., min_length=1, max_length=100)
    grade: int = Field(..., ge=1, le=4)
    age: int = Field(..., ge=18, le=100)
    gpa: str | None = Field(None, max_length=20)
    has_startup_item: bool = False
    self_introduction: str = Field("", max_length=300)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        digits = v.replace("-", "")
        if not _MOBILE_RE.match(digits):
            raise ValueError("Phone number must look like 010-1234-5678")
        return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"


class ApplicationResponse(BaseModel):
    id: int
    name: str
    email: str
    phone_number: str
    department: str
    grade: int
    age: int
    gpa: str
    has_startup_item: bool
    self_introduction: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class DeleteApplicationsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)
