"""
Pytest configuration file.
"""
import os

os.environ.setdefault("RATE_LIMIT", "10000/minute")

import pytest
from fastapi.testclient import TestClient
from app.core.dependencies import get_current_viewer
from app.core.viewer import ANONYMOUS, Guest, Student
from app.database.supabase_client import get_session_client_factory, get_service_supabase, get_supabase
from app.modules.auth.service import clear_user_cache
from app.modules.explore.cache import PageCache
from app.modules.explore.service import ExploreService, get_page_cache
from app.modules.explore.tracking import TrackingService
from app.main import app
from tests.fakes import FakeSessionClients, FakeSupabase, SCHOOL_A, SCHOOL_B


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def supabase():
    fake = FakeSupabase()
    fake.add_school(SCHOOL_A, "Alpha University", "@alpha.edu")
    fake.add_school(SCHOOL_B, "Beta Institute", "@beta.ac.in")
    return fake


@pytest.fixture
def page_cache():
    return PageCache(ttl_seconds=60, max_entries=100)


@pytest.fixture
def explore_service(supabase, page_cache):
    return ExploreService(supabase, page_cache, page_size=9)


@pytest.fixture
def tracking_service(supabase, page_cache):
    return TrackingService(supabase, page_cache)


@pytest.fixture
def student():
    return Student(user_id="student-1", school_id=SCHOOL_A)


@pytest.fixture
def other_student():
    return Student(user_id="student-2", school_id=SCHOOL_B)


@pytest.fixture
def guest():
    return ANONYMOUS


@pytest.fixture
def signed_in_guest():
    return Guest(user_id="no-school-user")


@pytest.fixture
def campus(supabase):
    """Two schools, verified and unverified clubs, intra and inter events, past and upcoming."""
    a_club = supabase.add_club(SCHOOL_A, "Alpha Robotics")
    b_club = supabase.add_club(SCHOOL_B, "Beta Drama")
    pending = supabase.add_club(SCHOOL_B, "Beta Pending", status="pending")
    rejected = supabase.add_club(SCHOOL_A, "Alpha Rejected", status="rejected")
    events = {
        "a_intra": supabase.add_event(a_club, "Alpha Hack Night", days=2, event_type="intra-school"),
        "a_inter": supabase.add_event(a_club, "Alpha Open Robotics Cup", days=3),
        "a_past": supabase.add_event(a_club, "Alpha Past Meetup", days=-3),
        "b_intra": supabase.add_event(b_club, "Beta Rehearsal", days=1, event_type="intra-school"),
        "b_inter": supabase.add_event(b_club, "Beta Theatre Festival", days=4),
        "b_past": supabase.add_event(b_club, "Beta Past Play", days=-1),
        "pending": supabase.add_event(pending, "Pending Club Party", days=2),
        "rejected": supabase.add_event(rejected, "Rejected Club Party", days=2),
    }
    return events


@pytest.fixture
def session_clients():
    return FakeSessionClients()


@pytest.fixture
def client(supabase, page_cache, session_clients):
    """Create test client."""
    clear_user_cache()
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_service_supabase] = lambda: supabase
    app.dependency_overrides[get_page_cache] = lambda: page_cache
    app.dependency_overrides[get_session_client_factory] = lambda: session_clients
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def as_viewer():
    """Make every request run as the given viewer."""
    def _set(viewer):
        app.dependency_overrides[get_current_viewer] = lambda: viewer
    return _set
