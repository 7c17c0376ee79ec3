"""
Which events a viewer is allowed to see.

Guests only ever see inter-school events. Students choose between their own
school (all event kinds) and other schools (inter-school only). In every case
the owning club must be verified.
"""

from dataclasses import dataclass
from typing import Optional
from app.core.viewer import Student, Viewer
from app.modules.explore.schemas import (
    EventCard, EventKind, FilterState, Scope, VerificationStatus
)


@dataclass(frozen=True)
class VisibilityPredicate:
    event_kind: Optional[EventKind] = None
    school_id: Optional[str] = None
    excluded_school_id: Optional[str] = None
    verification: VerificationStatus = VerificationStatus.VERIFIED

    def apply(self, query):
        query = query.eq("club.verification_status", self.verification.value)
        if self.event_kind is not None:
            query = query.eq("event_type", self.event_kind.value)
        if self.school_id is not None:
            query = query.eq("club.school_id", self.school_id)
        if self.excluded_school_id is not None:
            query = query.neq("club.school_id", self.excluded_school_id)
        return query

    def admits(self, event: EventCard) -> bool:
        if event.club.verification_status != self.verification:
            return False
        if self.event_kind is not None and event.event_type != self.event_kind:
            return False
        if self.school_id is not None and event.club.school_id != self.school_id:
            return False
        if self.excluded_school_id is not None and event.club.school_id == self.excluded_school_id:
            return False
        return True


def default_scope(viewer: Viewer) -> Scope:
    return Scope.IN_COLLEGE if isinstance(viewer, Student) else Scope.OUT_COLLEGE


def normalize_filters(viewer: Viewer, filters: FilterState) -> FilterState:
    """Fill in the scope for the viewer's role; guests are always forced to out-college."""
    if not isinstance(viewer, Student) or filters.scope is None:
        scope = default_scope(viewer)
        if filters.scope != scope:
            return filters.model_copy(update={"scope": scope})
    return filters


def resolve_visibility(viewer: Viewer, filters: FilterState) -> VisibilityPredicate:
    if not isinstance(viewer, Student):
        return VisibilityPredicate(event_kind=EventKind.INTER_SCHOOL)

    scope = filters.scope or default_scope(viewer)
    if scope == Scope.IN_COLLEGE:
        return VisibilityPredicate(school_id=viewer.school_id)
    return VisibilityPredicate(
        event_kind=EventKind.INTER_SCHOOL,
        excluded_school_id=viewer.school_id,
    )
