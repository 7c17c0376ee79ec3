import logging
from supabase import Client
from typing import Optional
from app.core.errors import AppError, Forbidden, NotFound, transport_failure
from app.core.viewer import Student, Viewer
from app.modules.explore.cache import PageCache
from app.modules.explore.schemas import TrackResponse

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class TrackingService:
    def __init__(self, supabase: Client, cache: Optional[PageCache] = None):
        self.supabase = supabase
        self.cache = cache

    def _require_student(self, viewer: Viewer) -> Student:
        if not isinstance(viewer, Student):
            raise Forbidden("Only students can track events.")
        return viewer

    def _ensure_event_exists(self, event_id: str) -> None:
        result = self.supabase.table("events")\
            .select("id")\
            .eq("id", event_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFound("Event not found", {"eventId": event_id})

    def is_tracked(self, student: Student, event_id: str) -> bool:
        result = self.supabase.table("tracked_events")\
            .select("event_id")\
            .eq("student_id", student.user_id)\
            .eq("event_id", event_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def track(self, viewer: Viewer, event_id: str) -> TrackResponse:
        """Mark the event as tracked; tracking an already tracked event is a no-op"""
        student = self._require_student(viewer)
        try:
            self._ensure_event_exists(event_id)
            if self.is_tracked(student, event_id):
                logger.debug(f"Event {event_id} already tracked by {student.user_id}")
            else:
                try:
                    self.supabase.table("tracked_events").insert({
                        "student_id": student.user_id,
                        "event_id": event_id,
                    }).execute()
                    logger.info(f"Student {student.user_id} tracked event {event_id}")
                except Exception as e:
                    # Lost a race with a concurrent insert of the same mark
                    if getattr(e, "code", None) != UNIQUE_VIOLATION:
                        raise
        except AppError:
            raise
        except Exception as e:
            raise transport_failure(e, "Failed to track event.")

        self._invalidate(student)
        return TrackResponse(event_id=event_id, is_tracked=True)

    def untrack(self, viewer: Viewer, event_id: str) -> TrackResponse:
        """Remove the tracking mark; untracking an untracked event is a no-op"""
        student = self._require_student(viewer)
        try:
            result = self.supabase.table("tracked_events")\
                .delete()\
                .eq("student_id", student.user_id)\
                .eq("event_id", event_id)\
                .execute()
        except Exception as e:
            raise transport_failure(e, "Failed to untrack event.")

        if result.data:
            logger.info(f"Student {student.user_id} untracked event {event_id}")
        self._invalidate(student)
        return TrackResponse(event_id=event_id, is_tracked=False)

    def set_tracked(self, viewer: Viewer, event_id: str, tracked: bool) -> TrackResponse:
        if tracked:
            return self.track(viewer, event_id)
        return self.untrack(viewer, event_id)

    def _invalidate(self, student: Student) -> None:
        if self.cache is not None:
            self.cache.invalidate_viewer(student.user_id)
