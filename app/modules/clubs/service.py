import logging
from supabase import Client
from app.core.errors import NotFound, TransportFailure, ValidationFailure, transport_failure
from app.core.viewer import Student
from app.modules.clubs.schemas import ClubCreate, ClubResponse
from typing import List

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class ClubService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_student_school_id(self, student: Student) -> str:
        """The students row is the source of truth for the school, not the token metadata"""
        try:
            result = self.supabase.table("students")\
                .select("school_id")\
                .eq("id", student.user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Could not load your student profile")
        if not result.data:
            raise NotFound("Could not find a student profile for your account.")
        return str(result.data[0]["school_id"])

    def register_club(self, club_data: ClubCreate, student: Student) -> ClubResponse:
        """Register a new club; it starts pending until verified"""
        school_id = self.get_student_school_id(student)
        try:
            result = self.supabase.table("clubs").insert({
                "name": club_data.name,
                "description": club_data.description,
                "category": club_data.category,
                "logo_url": str(club_data.logo_url) if club_data.logo_url else None,
                "leader_id": student.user_id,
                "school_id": school_id,
            }).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise ValidationFailure(
                    "Database error: Could not register the club. The name might already be taken.",
                    {"field": "name"},
                )
            raise transport_failure(e, "Database error: Could not register the club.")

        if not result.data:
            raise TransportFailure("Database error: Could not register the club.")
        logger.info(f"Student {student.user_id} registered club {club_data.name!r} for school {school_id}")
        row = dict(result.data[0])
        row.setdefault("verification_status", "pending")
        return ClubResponse(**row)

    def list_joined(self, student: Student) -> List[ClubResponse]:
        """Clubs the student is a member of, by name"""
        try:
            result = self.supabase.table("memberships")\
                .select("club_id, club:clubs!inner(*)")\
                .eq("student_id", student.user_id)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Could not fetch joined clubs.")

        clubs = [ClubResponse(**row["club"]) for row in result.data or [] if row.get("club")]
        return sorted(clubs, key=lambda c: c.name.lower())
