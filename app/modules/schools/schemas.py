from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class HookUser(BaseModel):
    email: EmailStr


class ValidateEmailRequest(BaseModel):
    record: HookUser


class ValidateEmailResponse(BaseModel):
    success: bool = True
    school_id: str = Field(..., serialization_alias="schoolId")


class SchoolProfile(BaseModel):
    id: str
    name: str
    location: Optional[str] = None
    image_url: Optional[str] = None
