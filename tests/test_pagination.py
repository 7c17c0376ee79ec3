"""
Page fetching against the data service: visibility properties, ordering,
cursor and tracking annotation.
"""
import pytest
from datetime import datetime, timezone
from app.core.errors import TransportFailure, ValidationFailure
from app.modules.explore.pagination import fetch_page, page_range
from app.modules.explore.schemas import EventKind, FilterState, Scope, TimeWindow
from app.modules.explore.service import build_predicate
from tests.fakes import FakeAPIError, SCHOOL_A, SCHOOL_B


def load(supabase, viewer, filters=None, page_index=0, page_size=9):
    predicate = build_predicate(viewer, filters or FilterState())
    return fetch_page(supabase, predicate, page_index, viewer, page_size, datetime.now(timezone.utc))


def load_all(supabase, viewer, filters=None, page_size=3):
    pages, cursor = [], 0
    while cursor is not None:
        page = load(supabase, viewer, filters, cursor, page_size)
        pages.append(page)
        cursor = page.next_cursor
    return pages


# =============================================================================
# TEST: Visibility properties
# =============================================================================
class TestVisibilityProperties:

    def test_guest_sees_only_inter_school_verified(self, supabase, campus, guest):
        page = load(supabase, guest)
        names = {e.name for e in page.events}
        assert names == {"Alpha Open Robotics Cup", "Beta Theatre Festival"}
        for event in page.events:
            assert event.event_type == EventKind.INTER_SCHOOL
            assert event.club.verification_status.value == "verified"
            assert event.is_tracked is False

    def test_student_in_college_sees_own_school_only(self, supabase, campus, student):
        page = load(supabase, student, FilterState(scope=Scope.IN_COLLEGE))
        assert {e.name for e in page.events} == {"Alpha Hack Night", "Alpha Open Robotics Cup"}
        assert all(e.club.school_id == SCHOOL_A for e in page.events)

    def test_student_out_college_sees_other_inter_school(self, supabase, campus, student):
        page = load(supabase, student, FilterState(scope=Scope.OUT_COLLEGE))
        assert [e.name for e in page.events] == ["Beta Theatre Festival"]
        for event in page.events:
            assert event.club.school_id != SCHOOL_A
            assert event.event_type == EventKind.INTER_SCHOOL

    def test_school_name_is_joined(self, supabase, campus, other_student):
        page = load(supabase, other_student)
        assert {e.club.school.name for e in page.events} == {"Beta Institute"}

    def test_leaked_row_is_dropped(self, supabase, campus, guest, monkeypatch):
        predicate = build_predicate(guest, FilterState())
        # A store that ignores the event_type filter must not leak intra-school events
        monkeypatch.setattr(type(predicate.visibility), "apply", lambda self, q: q.eq("club.verification_status", "verified"))
        page = fetch_page(supabase, predicate, 0, guest, 9, datetime.now(timezone.utc))
        assert all(e.event_type == EventKind.INTER_SCHOOL for e in page.events)


# =============================================================================
# TEST: Scenario - student of school A, upcoming, in-college
# =============================================================================
class TestStudentScenario:

    def test_first_page_of_own_school_upcoming(self, supabase, student):
        club = supabase.add_club(SCHOOL_A, "Alpha Chess")
        for day in range(12, 0, -1):
            supabase.add_event(club, f"Match {day}", days=day, event_type="intra-school")
        supabase.add_event(club, "Old Match", days=-2)
        other = supabase.add_club(SCHOOL_B, "Beta Chess")
        supabase.add_event(other, "Beta Match", days=1)

        page = load(supabase, student, FilterState(search="", date=TimeWindow.UPCOMING, scope=Scope.IN_COLLEGE))

        assert len(page.events) == 9
        assert page.count == 12
        assert page.next_cursor == 1
        assert all(e.club.school_id == SCHOOL_A for e in page.events)
        dates = [e.date for e in page.events]
        assert dates == sorted(dates)
        assert dates[0] >= datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


# =============================================================================
# TEST: Cursor pagination
# =============================================================================
class TestCursor:

    @pytest.fixture
    def many_events(self, supabase):
        club = supabase.add_club(SCHOOL_B, "Beta Film")
        return [supabase.add_event(club, f"Screening {i}", days=i + 1) for i in range(7)]

    def test_page_range(self):
        assert page_range(0, 9) == (0, 8)
        assert page_range(2, 9) == (18, 26)

    def test_pages_concatenate_without_duplicates_in_order(self, supabase, many_events, guest):
        pages = load_all(supabase, guest, page_size=3)
        ids = [e.id for page in pages for e in page.events]
        assert len(ids) == len(set(ids)) == 7
        dates = [e.date for page in pages for e in page.events]
        assert dates == sorted(dates)
        assert all(len(page.events) <= 3 for page in pages)

    def test_final_page_has_no_cursor_iff_short(self, supabase, many_events, guest):
        pages = load_all(supabase, guest, page_size=3)
        assert [len(p.events) for p in pages] == [3, 3, 1]
        assert [p.next_cursor for p in pages] == [1, 2, None]

    def test_exact_multiple_ends_with_empty_page(self, supabase, many_events, guest):
        pages = load_all(supabase, guest, page_size=7)
        assert [len(p.events) for p in pages] == [7, 0]
        assert pages[-1].next_cursor is None

    def test_past_window_is_descending(self, supabase, guest):
        club = supabase.add_club(SCHOOL_A, "Alpha History")
        for day in (-1, -5, -3):
            supabase.add_event(club, f"Talk {day}", days=day)
        page = load(supabase, guest, FilterState(date=TimeWindow.PAST))
        assert [e.name for e in page.events] == ["Talk -1", "Talk -3", "Talk -5"]

    def test_search_is_case_insensitive_substring(self, supabase, campus, guest):
        page = load(supabase, guest, FilterState(search="THEATRE"))
        assert [e.name for e in page.events] == ["Beta Theatre Festival"]

    def test_search_treats_wildcards_literally(self, supabase, guest):
        club = supabase.add_club(SCHOOL_A, "Alpha Math")
        supabase.add_event(club, "100% Math")
        supabase.add_event(club, "1000 Math")
        page = load(supabase, guest, FilterState(search="100%"))
        assert [e.name for e in page.events] == ["100% Math"]

    def test_negative_page_is_rejected(self, supabase, guest):
        with pytest.raises(ValidationFailure):
            load(supabase, guest, page_index=-1)

    def test_store_error_is_transport_failure(self, supabase, guest):
        supabase.fail_next("events", FakeAPIError("connection reset", code="08006"))
        with pytest.raises(TransportFailure) as exc_info:
            load(supabase, guest)
        assert exc_info.value.metadata["upstreamCode"] == "08006"


# =============================================================================
# TEST: Tracking annotation
# =============================================================================
class TestTrackingAnnotation:

    def test_student_sees_own_marks_only(self, supabase, campus, student):
        supabase.add_mark(student.user_id, campus["a_inter"]["id"])
        supabase.add_mark("someone-else", campus["a_intra"]["id"])
        page = load(supabase, student)
        tracked = {e.id: e.is_tracked for e in page.events}
        assert tracked[campus["a_inter"]["id"]] is True
        assert tracked[campus["a_intra"]["id"]] is False

    def test_guest_is_never_annotated(self, supabase, campus, guest):
        supabase.add_mark("someone", campus["a_inter"]["id"])
        page = load(supabase, guest)
        assert not any(e.is_tracked for e in page.events)
