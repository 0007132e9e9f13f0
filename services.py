from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Hashable, Iterable, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from categories import FlatCategoryIndex, flatten
from category_matching import ALL_CATEGORIES, CategoryResolver
from config import get_settings
from periods import DateRange, custom_range, matches_period, resolve_range
from search import FieldExtractor, matches_text
from selection import SelectionTracker

logger = logging.getLogger(__name__)

ALL_STATUSES = "All"


@dataclass(frozen=True)
class ScreenPreset:
    date_fields: tuple[str, ...]
    search_fields: tuple[FieldExtractor, ...]
    id_field: str = "id"


SCREEN_PRESETS: dict[str, ScreenPreset] = {
    "products": ScreenPreset(
        date_fields=("created_at", "formatted_date", "date"),
        search_fields=("name", "title", "store.name", "category.title", "categoryName"),
    ),
    "services": ScreenPreset(
        date_fields=("created_at", "formatted_date", "date"),
        search_fields=("name", "title", "store.name", "category.title", "categoryName"),
    ),
    "stores": ScreenPreset(
        date_fields=("created_at", "date"),
        search_fields=("store_name", "name", "email", "phone", "user.full_name"),
    ),
    "balances": ScreenPreset(
        date_fields=("created_at", "date", "formatted_date"),
        search_fields=("user_name", "store_name", "reference", "tx_id"),
    ),
    "leaderboard": ScreenPreset(
        date_fields=("created_at", "date"),
        search_fields=("name", "store_name", "email"),
    ),
}


@dataclass
class ListingFilters:
    category: Optional[str] = ALL_CATEGORIES
    period: Optional[str] = None
    query: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass
class SelectionSummary:
    selected_ids: list[Hashable] = field(default_factory=list)
    visible_selected_ids: list[Hashable] = field(default_factory=list)
    all_visible_selected: bool = False

    @property
    def count(self) -> int:
        return len(self.selected_ids)


def local_now() -> datetime:
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def matches_status(record: Mapping[str, Any], status: Optional[str]) -> bool:
    if not status or not status.strip() or status.strip().lower() == ALL_STATUSES.lower():
        return True
    value = record.get("status")
    if value is None:
        return False
    return str(value).strip().lower() == status.strip().lower()


class ListingService:
    def __init__(
        self,
        index: FlatCategoryIndex,
        *,
        date_fields: Optional[Sequence[str]] = None,
        search_fields: Sequence[FieldExtractor] = ("name", "title"),
        id_field: str = "id",
        now: Optional[datetime] = None,
        week_start: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.index = index
        self.resolver = CategoryResolver(index)
        self.date_fields = tuple(date_fields or settings.date_fields)
        self.search_fields = tuple(search_fields)
        self.id_field = id_field
        self.now = now or local_now()
        self.week_start = settings.week_start if week_start is None else week_start

    @classmethod
    def for_screen(
        cls,
        screen: str,
        taxonomy: Sequence[Any],
        *,
        now: Optional[datetime] = None,
    ) -> "ListingService":
        preset = SCREEN_PRESETS.get(screen)
        if preset is None:
            raise ValueError(f"Unknown listing screen '{screen}'")
        return cls(
            flatten(taxonomy),
            date_fields=preset.date_fields,
            search_fields=preset.search_fields,
            id_field=preset.id_field,
            now=now,
        )

    def date_range(self, filters: ListingFilters) -> Optional[DateRange]:
        resolved = resolve_range(filters.period, self.now, week_start=self.week_start)
        if resolved is not None:
            return resolved
        return custom_range(filters.date_from, filters.date_to, tz=self.now.tzinfo)

    def visible(
        self, records: Iterable[Mapping[str, Any]], filters: ListingFilters
    ) -> list[Mapping[str, Any]]:
        date_range = self.date_range(filters)
        out: list[Mapping[str, Any]] = []
        for record in records:
            if not isinstance(record, Mapping):
                logger.debug("skipping non-object record %r", type(record))
                continue
            if not self.resolver.matches(record, filters.category):
                continue
            if not matches_period(record, date_range, self.date_fields):
                continue
            if not matches_status(record, filters.status):
                continue
            if not matches_text(record, filters.query, self.search_fields):
                continue
            out.append(record)
        return out

    def record_id(self, record: Mapping[str, Any]) -> Optional[Hashable]:
        return record.get(self.id_field)

    def ids_of(self, records: Iterable[Mapping[str, Any]]) -> list[Hashable]:
        ids = (self.record_id(record) for record in records)
        return [record_id for record_id in ids if record_id is not None]

    def visible_ids(
        self, records: Iterable[Mapping[str, Any]], filters: ListingFilters
    ) -> list[Hashable]:
        return self.ids_of(self.visible(records, filters))

    def summary(
        self, tracker: SelectionTracker, visible_ids: Sequence[Hashable]
    ) -> SelectionSummary:
        return SelectionSummary(
            selected_ids=sorted(tracker.selected_ids, key=str),
            visible_selected_ids=tracker.selected_in(visible_ids),
            all_visible_selected=tracker.is_all_visible_selected(visible_ids),
        )
