import logging
from datetime import datetime
from supabase import Client
from app.core.errors import AppError, ValidationFailure, transport_failure
from app.core.viewer import Student, Viewer
from app.modules.explore.filters import EventPredicate
from app.modules.explore.schemas import EventCard, EventPage

logger = logging.getLogger(__name__)

EVENT_COLUMNS = (
    "id, name, date, banner_url, event_type, "
    "club:clubs!inner(id, name, school_id, verification_status, school:school(id, name))"
)
TRACKING_COLUMNS = "tracked_events!left(student_id)"


def page_range(page_index: int, page_size: int) -> tuple:
    start = page_index * page_size
    return start, start + page_size - 1


def fetch_page(
    supabase: Client,
    predicate: EventPredicate,
    page_index: int,
    viewer: Viewer,
    page_size: int,
    now: datetime,
) -> EventPage:
    """Fetch one page of events matching the predicate, annotated with the viewer's tracking marks."""
    if page_index < 0:
        raise ValidationFailure("Page index must be zero or greater", {"page": page_index})
    if page_size < 1:
        raise ValidationFailure("Page size must be at least 1", {"pageSize": page_size})

    is_student = isinstance(viewer, Student)
    columns = f"{EVENT_COLUMNS}, {TRACKING_COLUMNS}" if is_student else EVENT_COLUMNS
    start, end = page_range(page_index, page_size)

    try:
        query = supabase.table("events").select(columns, count="exact")
        if is_student:
            # Filters the embedded rows only: the viewer's own mark or nothing
            query = query.eq("tracked_events.student_id", viewer.user_id)
        query = predicate.apply(query, now)
        result = query.range(start, end).execute()
    except AppError:
        raise
    except Exception as e:
        raise transport_failure(e, "Failed to load events")

    rows = result.data or []
    events = []
    for row in rows[:page_size]:
        event = EventCard.from_row(row)
        if not is_student:
            event.is_tracked = False
        if not predicate.visibility.admits(event):
            logger.warning(f"Dropping event {event.id} outside the viewer's visibility")
            continue
        events.append(event)

    return EventPage(
        events=events,
        count=result.count or 0,
        next_cursor=None if len(rows) < page_size else page_index + 1,
        page=page_index,
    )
