"""
The viewer of a request: either a Guest or a Student.

A Student always has a school; a Guest may still be signed in (user_id set)
when their account has no school attached.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class Role(str, Enum):
    GUEST = "guest"
    STUDENT = "student"


@dataclass(frozen=True)
class Guest:
    user_id: Optional[str] = None

    @property
    def role(self) -> Role:
        return Role.GUEST


@dataclass(frozen=True)
class Student:
    user_id: str
    school_id: str

    @property
    def role(self) -> Role:
        return Role.STUDENT


Viewer = Union[Guest, Student]

ANONYMOUS = Guest()


def viewer_from_user(user_data: Optional[Dict[str, Any]]) -> Viewer:
    """Derive the viewer from the user dict built out of the identity token."""
    if not user_data:
        return ANONYMOUS
    school_id = (user_data.get("user_metadata") or {}).get("school_id")
    if school_id:
        return Student(user_id=user_data["id"], school_id=str(school_id))
    return Guest(user_id=user_data.get("id"))
