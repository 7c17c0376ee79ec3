import asyncio
import logging
from datetime import datetime, timezone
from supabase import Client
from typing import List, Optional
from app.config.settings import settings
from app.core.errors import AppError, transport_failure
from app.core.viewer import Student, Viewer
from app.modules.explore.cache import CacheKey, PageCache
from app.modules.explore.filters import EventPredicate, compile_filters
from app.modules.explore.pagination import EVENT_COLUMNS, fetch_page
from app.modules.explore.schemas import (
    EventCard, EventPage, FilterState, VerificationStatus
)
from app.modules.explore.visibility import normalize_filters, resolve_visibility

logger = logging.getLogger(__name__)

HOME_EVENTS_LIMIT = 10

# Shared by every request; invalidated by tracking changes
_page_cache = PageCache(
    ttl_seconds=settings.events_cache_ttl_seconds,
    max_entries=settings.events_cache_max_entries,
)


def get_page_cache() -> PageCache:
    return _page_cache


def build_predicate(viewer: Viewer, filters: FilterState) -> EventPredicate:
    filters = normalize_filters(viewer, filters)
    return EventPredicate(
        visibility=resolve_visibility(viewer, filters),
        filters=compile_filters(filters),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExploreService:
    def __init__(self, supabase: Client, cache: PageCache, page_size: Optional[int] = None):
        self.supabase = supabase
        self.cache = cache
        self.page_size = page_size or settings.events_page_size

    async def get_page(self, viewer: Viewer, filters: FilterState, page_index: int = 0) -> EventPage:
        """Page of discoverable events for the viewer; "now" is taken when the page is requested"""
        predicate = build_predicate(viewer, filters)
        key = CacheKey(predicate.key(), viewer.user_id)

        async def fetch() -> EventPage:
            return await asyncio.to_thread(
                fetch_page,
                self.supabase,
                predicate,
                page_index,
                viewer,
                self.page_size,
                _utcnow(),
            )

        return await self.cache.get_or_fetch(key, page_index, fetch)

    def list_upcoming_for_school(self, student: Student, limit: int = HOME_EVENTS_LIMIT) -> List[EventCard]:
        """Next events of the student's own school, for the home page"""
        try:
            result = self.supabase.table("events")\
                .select(EVENT_COLUMNS)\
                .eq("club.verification_status", VerificationStatus.VERIFIED.value)\
                .eq("club.school_id", student.school_id)\
                .gte("date", _utcnow().isoformat())\
                .order("date")\
                .limit(limit)\
                .execute()
        except AppError:
            raise
        except Exception as e:
            raise transport_failure(e, "Failed to load upcoming events")
        return [EventCard.from_row(row) for row in result.data or []]

    def list_tracked(self, student: Student) -> List[EventCard]:
        """Events the student tracks, soonest first"""
        try:
            result = self.supabase.table("tracked_events")\
                .select(f"event_id, event:events!inner({EVENT_COLUMNS})")\
                .eq("student_id", student.user_id)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Failed to load tracked events")

        events = []
        for row in result.data or []:
            event = row.get("event")
            if not event:
                continue
            card = EventCard.from_row(event)
            card.is_tracked = True
            events.append(card)
        return sorted(events, key=lambda e: e.date)

    def list_participated(self, student: Student) -> List[EventCard]:
        """Events the student took part in, most recent first"""
        try:
            result = self.supabase.table("event_participants")\
                .select(f"event_id, event:events!inner({EVENT_COLUMNS})")\
                .eq("student_id", student.user_id)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Could not fetch participated events.")

        events = [EventCard.from_row(row["event"]) for row in result.data or [] if row.get("event")]
        return sorted(events, key=lambda e: e.date, reverse=True)
