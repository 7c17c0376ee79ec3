"""
Tracking toggle: idempotence, role checks and error mapping.
"""
import asyncio
import pytest
from app.core.errors import Forbidden, NotFound, TransportFailure
from app.modules.explore.schemas import FilterState
from tests.fakes import FakeAPIError


# =============================================================================
# TEST: Track / untrack
# =============================================================================
class TestTrack:

    def test_track_creates_one_mark(self, supabase, campus, tracking_service, student):
        event_id = campus["a_inter"]["id"]
        response = tracking_service.track(student, event_id)

        assert response.is_tracked is True
        assert response.message == "Your tracked events have been updated."
        assert len(supabase.marks(student.user_id, event_id)) == 1

    def test_track_twice_is_idempotent(self, supabase, campus, tracking_service, student):
        event_id = campus["a_inter"]["id"]
        tracking_service.track(student, event_id)
        tracking_service.track(student, event_id)
        assert len(supabase.marks(student.user_id, event_id)) == 1

    def test_concurrent_insert_race_is_ignored(self, supabase, campus, tracking_service, student):
        event_id = campus["a_inter"]["id"]
        original_is_tracked = tracking_service.is_tracked

        def lose_race(viewer, eid):
            # Another request inserts the mark between the check and the insert
            answer = original_is_tracked(viewer, eid)
            supabase.add_mark(viewer.user_id, eid)
            return answer

        tracking_service.is_tracked = lose_race
        response = tracking_service.track(student, event_id)

        assert response.is_tracked is True
        assert len(supabase.marks(student.user_id, event_id)) == 1

    def test_untrack_removes_mark(self, supabase, campus, tracking_service, student):
        event_id = campus["a_inter"]["id"]
        supabase.add_mark(student.user_id, event_id)

        response = tracking_service.untrack(student, event_id)

        assert response.is_tracked is False
        assert supabase.marks(student.user_id, event_id) == []

    def test_untrack_without_mark_is_noop(self, supabase, campus, tracking_service, student):
        supabase.add_mark("student-2", campus["a_inter"]["id"])
        response = tracking_service.untrack(student, campus["a_inter"]["id"])
        assert response.is_tracked is False
        assert len(supabase.marks()) == 1

    def test_set_tracked_dispatches(self, supabase, campus, tracking_service, student):
        event_id = campus["b_inter"]["id"]
        assert tracking_service.set_tracked(student, event_id, True).is_tracked is True
        assert tracking_service.is_tracked(student, event_id)
        assert tracking_service.set_tracked(student, event_id, False).is_tracked is False
        assert not tracking_service.is_tracked(student, event_id)


# =============================================================================
# TEST: Rejections and failures
# =============================================================================
class TestTrackErrors:

    def test_guest_is_forbidden(self, supabase, campus, tracking_service, guest):
        with pytest.raises(Forbidden) as exc_info:
            tracking_service.track(guest, campus["a_inter"]["id"])
        assert exc_info.value.status_code == 403
        assert supabase.marks() == []
        assert supabase.calls == []

    def test_signed_in_guest_is_forbidden(self, supabase, campus, tracking_service, signed_in_guest):
        with pytest.raises(Forbidden):
            tracking_service.untrack(signed_in_guest, campus["a_inter"]["id"])
        assert supabase.calls == []

    def test_unknown_event_is_not_found(self, supabase, tracking_service, student):
        with pytest.raises(NotFound):
            tracking_service.track(student, "missing-event")
        assert supabase.marks() == []

    def test_store_failure_is_transport_failure(self, supabase, campus, tracking_service, student):
        supabase.fail_next("tracked_events", FakeAPIError("connection refused"))
        with pytest.raises(TransportFailure) as exc_info:
            tracking_service.track(student, campus["a_inter"]["id"])
        assert exc_info.value.message == "Failed to track event."
        assert exc_info.value.status_code == 502

    def test_untrack_failure_is_transport_failure(self, supabase, campus, tracking_service, student):
        supabase.fail_next("tracked_events", FakeAPIError("connection refused"))
        with pytest.raises(TransportFailure):
            tracking_service.untrack(student, campus["a_inter"]["id"])


# =============================================================================
# TEST: Cache invalidation
# =============================================================================
class TestTrackInvalidatesPages:

    def test_next_read_reflects_new_mark(self, supabase, campus, explore_service, tracking_service, student):
        event_id = campus["a_inter"]["id"]
        before = asyncio.run(explore_service.get_page(student, FilterState()))
        assert not {e.id: e.is_tracked for e in before.events}[event_id]

        tracking_service.track(student, event_id)

        after = asyncio.run(explore_service.get_page(student, FilterState()))
        assert {e.id: e.is_tracked for e in after.events}[event_id] is True

    def test_other_viewers_pages_stay_cached(self, supabase, campus, explore_service, tracking_service, student, other_student):
        asyncio.run(explore_service.get_page(other_student, FilterState()))
        reads = len(supabase.queries("events", "select"))

        tracking_service.track(student, campus["a_inter"]["id"])
        asyncio.run(explore_service.get_page(other_student, FilterState()))

        # Only the existence check for the tracked event touched the events table
        assert len(supabase.queries("events", "select")) == reads + 1
