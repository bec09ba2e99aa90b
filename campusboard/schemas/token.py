from pydantic import BaseModel

from campusboard.schemas.admin import AdminResponse


class Token(BaseModel):
    access_token: str
    token_type: str
    admin: AdminResponse
