from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class EventKind(str, Enum):
    INTRA_SCHOOL = "intra-school"
    INTER_SCHOOL = "inter-school"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class TimeWindow(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


class Scope(str, Enum):
    IN_COLLEGE = "in-college"
    OUT_COLLEGE = "out-college"


class FilterState(BaseModel):
    search: str = Field("", max_length=100)
    date: TimeWindow = TimeWindow.UPCOMING
    scope: Optional[Scope] = None  # None -> default scope for the viewer's role

    @field_validator("search", mode="before")
    @classmethod
    def strip_search(cls, v):
        return (v or "").strip()

    model_config = {"frozen": True}


class SchoolInfo(BaseModel):
    id: str
    name: str


class ClubInfo(BaseModel):
    id: str
    name: str
    school_id: str
    verification_status: VerificationStatus
    school: Optional[SchoolInfo] = None


class EventCard(BaseModel):
    id: str
    name: str
    date: datetime
    banner_url: Optional[str] = None
    event_type: EventKind
    club: ClubInfo
    is_tracked: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EventCard":
        """Build a card from an events row with the joined club and the viewer's own tracked_events rows."""
        data = {k: v for k, v in row.items() if k != "tracked_events"}
        data["is_tracked"] = len(row.get("tracked_events") or []) > 0
        return cls(**data)


class EventPage(BaseModel):
    events: List[EventCard]
    count: int
    next_cursor: Optional[int] = None
    page: int = 0


class TrackResponse(BaseModel):
    event_id: str
    is_tracked: bool
    message: str = "Your tracked events have been updated."
