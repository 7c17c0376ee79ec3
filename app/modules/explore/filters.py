from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional
import hashlib
import json
from app.modules.explore.schemas import FilterState, TimeWindow
from app.modules.explore.visibility import VisibilityPredicate


def escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class FilterPredicate:
    name_pattern: Optional[str] = None
    window: TimeWindow = TimeWindow.UPCOMING

    @property
    def descending(self) -> bool:
        return self.window == TimeWindow.PAST

    def apply(self, query, now: datetime):
        if self.name_pattern is not None:
            query = query.ilike("name", self.name_pattern)
        moment = now.isoformat()
        if self.window == TimeWindow.UPCOMING:
            query = query.gte("date", moment)
        else:
            query = query.lt("date", moment)
        # id breaks ties between events at the same instant so pages never overlap
        return query.order("date", desc=self.descending).order("id")


def compile_filters(filters: FilterState) -> FilterPredicate:
    pattern = f"%{escape_like(filters.search)}%" if filters.search else None
    return FilterPredicate(name_pattern=pattern, window=filters.date)


@dataclass(frozen=True)
class EventPredicate:
    visibility: VisibilityPredicate
    filters: FilterPredicate

    def apply(self, query, now: datetime):
        return self.filters.apply(self.visibility.apply(query), now)

    def key(self) -> str:
        """Stable identity of the predicate; "now" is not part of it."""
        payload = json.dumps(
            {"visibility": asdict(self.visibility), "filters": asdict(self.filters)},
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(payload.encode()).hexdigest()
