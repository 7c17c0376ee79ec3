from fastapi import APIRouter, Depends, Header
from app.config.settings import settings
from app.core.dependencies import require_student
from app.core.viewer import Student
from app.database.supabase_client import get_service_supabase, get_supabase
from app.modules.schools.schemas import SchoolProfile, ValidateEmailRequest, ValidateEmailResponse
from app.modules.schools.service import SchoolService, verify_hook_secret
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/hooks", tags=["hooks"])
profile_router = APIRouter(prefix="/schools", tags=["schools"])


def get_school_service(supabase: Client = Depends(get_service_supabase)) -> SchoolService:
    return SchoolService(supabase)


def get_school_profile_service(supabase: Client = Depends(get_supabase)) -> SchoolService:
    return SchoolService(supabase)


def require_hook_secret(authorization: Optional[str] = Header(None)) -> None:
    verify_hook_secret(authorization, settings.auth_hook_secret)


@router.post(
    "/validate-school-email",
    response_model=ValidateEmailResponse,
    response_model_by_alias=True,
    dependencies=[Depends(require_hook_secret)],
)
async def validate_school_email(
    payload: ValidateEmailRequest,
    service: SchoolService = Depends(get_school_service)
):
    """Auth hook: allow the sign-up only for emails of a known school"""
    school_id = service.find_school_id_by_email(payload.record.email)
    return ValidateEmailResponse(school_id=school_id)


@profile_router.get("/me", response_model=SchoolProfile)
async def my_school(
    student: Student = Depends(require_student),
    service: SchoolService = Depends(get_school_profile_service)
):
    """Profile of the student's school (dashboard)"""
    return service.get_school(student.school_id)
