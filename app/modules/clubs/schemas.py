from pydantic import BaseModel, Field, HttpUrl, field_validator
from typing import Optional, List
from datetime import datetime

CLUB_CATEGORIES = [
    "Academic",
    "Arts & Culture",
    "Sports & Fitness",
    "Technology",
    "Social Service",
    "Business & Entrepreneurship",
    "Music & Dance",
    "Drama & Theatre",
    "Photography",
    "Gaming & E-Sports",
    "Environment",
    "Literature",
    "Other",
]


class ClubCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    category: str = Field(..., min_length=1)
    logo_url: Optional[HttpUrl] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v not in CLUB_CATEGORIES:
            raise ValueError("Please select a category")
        return v

    @field_validator("logo_url", mode="before")
    @classmethod
    def empty_logo_is_none(cls, v):
        return v or None


class ClubResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    logo_url: Optional[str] = None
    school_id: str
    leader_id: Optional[str] = None
    verification_status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClubCategoriesResponse(BaseModel):
    categories: List[str]
