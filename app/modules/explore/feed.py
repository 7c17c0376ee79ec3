"""
Pull-based driver for infinite event lists.

A UI wires its "end of list is visible" signal to ``next_page()``; nothing
here depends on a UI. Pages are requested in increasing order, one at a time.
Changing the filters or the viewer restarts from page 0 and turns any
response still in flight into a stale one that never reaches ``pages``.
"""

import asyncio
import logging
from enum import Enum
from pydantic import ValidationError
from typing import Any, Callable, List, Optional, Union
from app.core.errors import AppError, ValidationFailure
from app.core.viewer import Viewer, viewer_from_user
from app.modules.explore.schemas import EventCard, EventPage, FilterState
from app.modules.explore.service import ExploreService
from app.modules.explore.tracking import TrackingService
from app.modules.explore.visibility import default_scope, normalize_filters

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


class FeedSignal(Enum):
    EXHAUSTED = "exhausted"
    STALE = "stale"


EXHAUSTED = FeedSignal.EXHAUSTED
STALE = FeedSignal.STALE


def log_notification(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


class EventFeed:
    def __init__(
        self,
        explore: ExploreService,
        tracking: TrackingService,
        viewer: Viewer,
        filters: Optional[FilterState] = None,
        notify: Notifier = log_notification,
    ):
        self.explore = explore
        self.tracking = tracking
        self.notify = notify
        self._viewer = viewer
        self._filters = normalize_filters(viewer, filters or FilterState())
        self._generation = 0
        self._in_flight: Optional[asyncio.Future] = None
        self._reset()

    @property
    def viewer(self) -> Viewer:
        return self._viewer

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def events(self) -> List[EventCard]:
        return [event for page in self.pages for event in page.events]

    @property
    def total(self) -> int:
        return self.pages[0].count if self.pages else 0

    @property
    def has_next_page(self) -> bool:
        return self.next_cursor is not None

    @property
    def is_fetching(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def _reset(self) -> None:
        self._generation += 1
        self._in_flight = None
        self.pages: List[EventPage] = []
        self.next_cursor: Optional[int] = 0
        self.error: Optional[AppError] = None

    def set_filters(self, **changes: Any) -> FilterState:
        """Apply filter changes (search, date, scope) and restart from the first page"""
        unknown = sorted(set(changes) - set(FilterState.model_fields))
        if unknown:
            raise self._invalid_filters(
                [{"type": "extra_forbidden", "loc": [name], "msg": "Unknown filter"} for name in unknown]
            )
        try:
            filters = FilterState(**{**self._filters.model_dump(), **changes})
        except ValidationError as e:
            raise self._invalid_filters(e.errors(include_url=False, include_context=False))
        filters = normalize_filters(self._viewer, filters)
        if filters != self._filters:
            self._filters = filters
            self._reset()
        return filters

    def _invalid_filters(self, errors: List[dict]) -> ValidationFailure:
        self.notify("error", "Invalid filters")
        return ValidationFailure("Invalid filters", {"errors": errors})

    def clear_filters(self) -> FilterState:
        return self.set_filters(search="", date="upcoming", scope=default_scope(self._viewer))

    def set_viewer(self, viewer: Viewer) -> None:
        """Switch viewer; a role change resets the scope to the new role's default before any fetch"""
        if viewer == self._viewer:
            return
        role_changed = viewer.role != self._viewer.role
        self._viewer = viewer
        scope = default_scope(viewer) if role_changed else self._filters.scope
        self._filters = normalize_filters(viewer, self._filters.model_copy(update={"scope": scope}))
        self._reset()

    def follow_auth(self, auth_client) -> Any:
        """Subscribe to the identity provider's auth state changes; returns the subscription"""
        def on_change(event, session):
            user = getattr(session, "user", None) if session else None
            user_data = None
            if user is not None:
                user_data = {"id": user.id, "user_metadata": user.user_metadata or {}}
            logger.debug(f"Auth state changed: {event}")
            self.set_viewer(viewer_from_user(user_data))

        return auth_client.on_auth_state_change(on_change)

    async def next_page(self) -> Union[EventPage, FeedSignal]:
        if self._in_flight is not None and not self._in_flight.done():
            return await asyncio.shield(self._in_flight)
        if self.next_cursor is None:
            return EXHAUSTED

        self._in_flight = asyncio.ensure_future(self._load(self.next_cursor, self._generation))
        return await asyncio.shield(self._in_flight)

    async def _load(self, page_index: int, generation: int) -> Union[EventPage, FeedSignal]:
        viewer, filters = self._viewer, self._filters
        try:
            page = await self.explore.get_page(viewer, filters, page_index)
        except AppError as e:
            if generation != self._generation:
                return STALE
            self.error = e
            self.notify("error", e.message)
            raise
        if generation != self._generation:
            logger.debug(f"Discarding stale page {page_index}")
            return STALE
        # Cached pages are shared between feeds; the optimistic toggle edits our own copy
        page = page.model_copy(deep=True)
        self.error = None
        self.pages.append(page)
        self.next_cursor = page.next_cursor
        return page

    async def retry(self) -> Union[EventPage, FeedSignal]:
        """Retry after a failed fetch (explicit user action)"""
        self.error = None
        return await self.next_page()

    async def refresh(self) -> None:
        """Refetch every loaded page, e.g. after the tracking marks changed"""
        loaded = len(self.pages)
        self._reset()
        for _ in range(max(loaded, 1)):
            result = await self.next_page()
            if result is EXHAUSTED or result is STALE:
                break

    def _find(self, event_id: str) -> Optional[EventCard]:
        return next((e for e in self.events if e.id == event_id), None)

    async def toggle_tracking(self, event_id: str) -> bool:
        """Flip the tracking mark optimistically; reverts and notifies on failure"""
        card = self._find(event_id)
        previous = card.is_tracked if card else False
        intended = not previous
        if card is not None:
            card.is_tracked = intended

        try:
            response = await asyncio.to_thread(
                self.tracking.set_tracked, self._viewer, event_id, intended
            )
        except AppError as e:
            if card is not None:
                card.is_tracked = previous
            self.notify("error", e.message)
            raise

        self.notify("success", response.message)
        try:
            await self.refresh()
        except AppError as e:
            # The mark is saved; the failed reload is already in self.error and notified
            logger.warning(f"Reload after tracking change failed: {e.message}")
        return intended
