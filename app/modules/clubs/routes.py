from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.dependencies import require_student
from app.core.viewer import Student
from app.modules.clubs.schemas import CLUB_CATEGORIES, ClubCategoriesResponse, ClubCreate, ClubResponse
from app.modules.clubs.service import ClubService
from supabase import Client
from typing import List

router = APIRouter(prefix="/clubs", tags=["clubs"])


def get_club_service(supabase: Client = Depends(get_supabase)) -> ClubService:
    return ClubService(supabase)


@router.post("", response_model=ClubResponse, status_code=201)
async def register_club(
    club_data: ClubCreate,
    student: Student = Depends(require_student),
    service: ClubService = Depends(get_club_service)
):
    """Submit a new club for verification"""
    return service.register_club(club_data, student)


@router.get("/joined", response_model=List[ClubResponse])
async def list_joined_clubs(
    student: Student = Depends(require_student),
    service: ClubService = Depends(get_club_service)
):
    """Clubs the student has joined (dashboard)"""
    return service.list_joined(student)


@router.get("/categories", response_model=ClubCategoriesResponse)
async def list_categories():
    """Categories a club can be registered under"""
    return ClubCategoriesResponse(categories=CLUB_CATEGORIES)
