import logging
import secrets
from supabase import Client
from typing import Optional
from app.core.errors import NotFound, Unauthorized, transport_failure
from app.modules.explore.filters import escape_like
from app.modules.schools.schemas import SchoolProfile

logger = logging.getLogger(__name__)


def email_domain(email: str) -> str:
    """'jane@Kiit.ac.in' -> '@kiit.ac.in'"""
    return "@" + email[email.rfind("@") + 1:].lower()


def verify_hook_secret(authorization: Optional[str], secret: Optional[str]) -> None:
    """Reject unless the header is exactly "Bearer <secret>"; an unconfigured secret rejects everything."""
    if not secret or not authorization:
        raise Unauthorized("Unauthorized: Invalid hook secret")
    if not secrets.compare_digest(authorization.encode(), f"Bearer {secret}".encode()):
        raise Unauthorized("Unauthorized: Invalid hook secret")


class SchoolService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_school_id_by_email(self, email: str) -> str:
        domain = email_domain(email)
        try:
            result = self.supabase.table("school")\
                .select("id")\
                .ilike("email_suffix", escape_like(domain))\
                .limit(1)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Could not look up the school for this email")

        if not result.data:
            logger.warning(f"Rejected sign-up from unsupported domain {domain}")
            raise NotFound(f'Your email domain "{domain}" is not supported.', {"domain": domain})
        return str(result.data[0]["id"])

    def get_school(self, school_id: str) -> SchoolProfile:
        try:
            result = self.supabase.table("school")\
                .select("id, name, location, image_url")\
                .eq("id", school_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Failed to fetch school profile.")

        if not result.data:
            raise NotFound("Failed to fetch school profile.", {"schoolId": school_id})
        return SchoolProfile(**result.data[0])
