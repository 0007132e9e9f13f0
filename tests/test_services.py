from datetime import date, datetime

import pytest

from categories import flatten
from selection import SelectionTracker
from services import ListingFilters, ListingService, matches_status

NOW = datetime(2025, 3, 15, 10, 0)

TAXONOMY = [
    {
        "id": 1,
        "title": "Electronics",
        "children": [
            {"id": 2, "title": "Phones"},
            {"id": 3, "title": "Laptops"},
        ],
    },
    {"id": 10, "title": "Fashion"},
]

RECORDS = [
    {"id": "a", "name": "Pixel 9", "categoryId": 2, "created_at": "2025-02-10", "status": "active"},
    {"id": "b", "name": "ThinkPad", "categoryId": 3, "created_at": "2025-03-01", "status": "pending"},
    {"id": "c", "name": "Sneakers", "categoryName": "Fashion", "created_at": "2025-02-20", "status": "active"},
    {"id": "d", "name": "Galaxy S25", "category": {"id": 2, "title": "Phones"}, "created_at": None},
    {"id": "e", "name": "Mystery box", "created_at": "2025-02-11", "status": "active"},
]


def _service() -> ListingService:
    return ListingService(flatten(TAXONOMY), search_fields=("name",), now=NOW)


def test_default_filters_show_everything_in_order() -> None:
    visible = _service().visible(RECORDS, ListingFilters())

    assert [r["id"] for r in visible] == ["a", "b", "c", "d", "e"]


def test_electronics_scenario() -> None:
    index = flatten(
        [{"id": 1, "title": "Electronics", "children": [{"id": 2, "title": "Phones"}]}]
    )
    records = [
        {"id": "a", "categoryId": 2},
        {"id": "b", "categoryId": 1},
        {"id": "c", "categoryId": 99},
    ]
    service = ListingService(index, now=NOW)

    assert service.visible_ids(records, ListingFilters(category="Electronics")) == ["a", "b"]


def test_filters_combine() -> None:
    service = _service()

    by_category = service.visible_ids(RECORDS, ListingFilters(category="Electronics"))
    assert by_category == ["a", "b", "d"]

    last_month = service.visible_ids(
        RECORDS, ListingFilters(category="Electronics", period="Last Month")
    )
    assert last_month == ["a"]

    searched = service.visible_ids(RECORDS, ListingFilters(query="PAD"))
    assert searched == ["b"]


def test_status_filter() -> None:
    service = _service()

    assert service.visible_ids(RECORDS, ListingFilters(status="Active")) == ["a", "c", "e"]
    assert service.visible_ids(RECORDS, ListingFilters(status="All")) == ["a", "b", "c", "d", "e"]
    assert service.visible_ids(RECORDS, ListingFilters(status="all")) == ["a", "b", "c", "d", "e"]
    assert matches_status({}, " ALL ")
    assert not matches_status({}, "pending")


def test_custom_date_range_applies_without_period() -> None:
    service = _service()
    filters = ListingFilters(date_from=date(2025, 2, 11), date_to=date(2025, 2, 20))

    assert service.visible_ids(RECORDS, filters) == ["c", "e"]


def test_period_takes_priority_over_custom_range() -> None:
    service = _service()
    filters = ListingFilters(
        period="This Month", date_from=date(2025, 2, 1), date_to=date(2025, 2, 28)
    )

    assert service.visible_ids(RECORDS, filters) == ["b"]


def test_invalid_custom_range_raises() -> None:
    with pytest.raises(ValueError):
        _service().visible(
            RECORDS, ListingFilters(date_from=date(2025, 3, 1), date_to=date(2025, 2, 1))
        )


def test_non_object_records_are_skipped() -> None:
    visible = _service().visible([None, "x", RECORDS[0]], ListingFilters())

    assert visible == [RECORDS[0]]


def test_summary_reflects_selection_outside_the_view() -> None:
    service = _service()
    tracker = SelectionTracker(["a", "c"])
    visible_ids = service.visible_ids(RECORDS, ListingFilters(category="Phones"))

    summary = service.summary(tracker, visible_ids)

    assert visible_ids == ["a", "b", "d"]
    assert summary.selected_ids == ["a", "c"]
    assert summary.visible_selected_ids == ["a"]
    assert summary.all_visible_selected is False
    assert summary.count == 2


def test_for_screen_uses_presets() -> None:
    service = ListingService.for_screen(
        "products",
        TAXONOMY,
        now=NOW,
    )
    records = [{"id": 1, "name": "Case", "store": {"name": "Lagos Gadgets"}}]

    assert service.visible_ids(records, ListingFilters(query="lagos")) == [1]
    with pytest.raises(ValueError):
        ListingService.for_screen("unknown", TAXONOMY)
