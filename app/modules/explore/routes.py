from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_viewer, require_student
from app.core.viewer import Student, Viewer
from app.modules.explore.cache import PageCache
from app.modules.explore.schemas import (
    EventCard, EventPage, FilterState, Scope, TimeWindow, TrackResponse
)
from app.modules.explore.service import ExploreService, get_page_cache
from app.modules.explore.tracking import TrackingService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/events", tags=["events"])


def get_explore_service(
    supabase: Client = Depends(get_supabase),
    cache: PageCache = Depends(get_page_cache)
) -> ExploreService:
    return ExploreService(supabase, cache)


def get_tracking_service(
    supabase: Client = Depends(get_supabase),
    cache: PageCache = Depends(get_page_cache)
) -> TrackingService:
    return TrackingService(supabase, cache)


@router.get("", response_model=EventPage)
async def list_events(
    search: str = Query("", max_length=100),
    date: TimeWindow = TimeWindow.UPCOMING,
    scope: Optional[Scope] = None,
    page: int = Query(0, ge=0),
    viewer: Viewer = Depends(get_current_viewer),
    service: ExploreService = Depends(get_explore_service)
):
    """Explore events visible to the viewer. `page` is the cursor returned as `next_cursor`."""
    filters = FilterState(search=search, date=date, scope=scope)
    return await service.get_page(viewer, filters, page)


@router.get("/upcoming", response_model=List[EventCard])
async def list_upcoming(
    student: Student = Depends(require_student),
    service: ExploreService = Depends(get_explore_service)
):
    """Upcoming events of the student's own school (home page)"""
    return service.list_upcoming_for_school(student)


@router.get("/tracked", response_model=List[EventCard])
async def list_tracked(
    student: Student = Depends(require_student),
    service: ExploreService = Depends(get_explore_service)
):
    """Events the student is tracking"""
    return service.list_tracked(student)


@router.get("/participated", response_model=List[EventCard])
async def list_participated(
    student: Student = Depends(require_student),
    service: ExploreService = Depends(get_explore_service)
):
    """Events the student took part in (dashboard)"""
    return service.list_participated(student)


@router.post("/{event_id}/track", response_model=TrackResponse)
async def track_event(
    event_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    service: TrackingService = Depends(get_tracking_service)
):
    """Track an event (students only)"""
    return service.track(viewer, event_id)


@router.delete("/{event_id}/track", response_model=TrackResponse)
async def untrack_event(
    event_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    service: TrackingService = Depends(get_tracking_service)
):
    """Stop tracking an event (students only)"""
    return service.untrack(viewer, event_id)
