"""Cache of fetched event pages keyed by (predicate, viewer), with in-flight deduplication."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple
from app.modules.explore.schemas import EventPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    predicate_hash: str
    viewer_id: Optional[str]


class PageCache:
    def __init__(self, ttl_seconds: float = 30, max_entries: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._pages: Dict[Tuple[CacheKey, int], Tuple[EventPage, float]] = {}
        self._in_flight: Dict[Tuple[CacheKey, int], asyncio.Future] = {}

    def get(self, key: CacheKey, page_index: int) -> Optional[EventPage]:
        entry = self._pages.get((key, page_index))
        if entry is None:
            return None
        page, expiry = entry
        if time.monotonic() >= expiry:
            del self._pages[(key, page_index)]
            return None
        return page

    def put(self, key: CacheKey, page_index: int, page: EventPage) -> None:
        if len(self._pages) >= self.max_entries:
            self._evict_expired()
            if len(self._pages) >= self.max_entries:
                # Oldest insertion goes first
                self._pages.pop(next(iter(self._pages)))
        self._pages[(key, page_index)] = (page, time.monotonic() + self.ttl_seconds)

    async def get_or_fetch(
        self,
        key: CacheKey,
        page_index: int,
        fetch: Callable[[], Awaitable[EventPage]],
    ) -> EventPage:
        """Return the cached page or fetch it; concurrent callers for the same page share one fetch.

        A fetch is stored only while it still owns its in-flight slot; invalidation releases the slot.
        """
        cached = self.get(key, page_index)
        if cached is not None:
            return cached

        slot = (key, page_index)
        pending = self._in_flight.get(slot)
        if pending is not None:
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(fetch())
        self._in_flight[slot] = task
        try:
            page = await asyncio.shield(task)
        except BaseException:
            if self._in_flight.get(slot) is task:
                del self._in_flight[slot]
            raise

        if self._in_flight.get(slot) is task:
            del self._in_flight[slot]
            self.put(key, page_index, page)
        else:
            logger.debug(f"Discarding page {page_index} fetched before invalidation")
        return page

    def invalidate(self, key: CacheKey) -> None:
        for slot in [s for s in self._pages if s[0] == key]:
            del self._pages[slot]
        for slot in [s for s in self._in_flight if s[0] == key]:
            del self._in_flight[slot]

    def invalidate_viewer(self, viewer_id: Optional[str]) -> None:
        keys = {slot[0] for slot in list(self._pages) + list(self._in_flight)}
        for key in keys:
            if key.viewer_id == viewer_id:
                self.invalidate(key)
        logger.debug(f"Invalidated cached event pages for viewer {viewer_id}")

    def clear(self) -> None:
        self._pages.clear()
        self._in_flight.clear()

    def __len__(self) -> int:
        return len(self._pages)

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for slot in [s for s, (_, expiry) in self._pages.items() if expiry <= now]:
            del self._pages[slot]
