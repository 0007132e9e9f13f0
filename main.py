import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException

from categories import flatten
from config import get_settings
from periods import PeriodLabel
from schemas import (
    CategoryNodeOut,
    ListingFilterIn,
    ListingFilterOut,
    PeriodsOut,
    SelectionAction,
    SelectionIn,
    SelectionOut,
    SelectionSummaryOut,
)
from selection import SelectionTracker
from services import SCREEN_PRESETS, ListingFilters, ListingService

logging.basicConfig(level=get_settings().log_level)

app = FastAPI(title="Listing Filters")


def service_from_payload(payload: ListingFilterIn) -> ListingService:
    try:
        if payload.screen:
            return ListingService.for_screen(
                payload.screen, payload.taxonomy, now=payload.now
            )
        return ListingService(flatten(payload.taxonomy), now=payload.now)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def filters_from_payload(payload: ListingFilterIn) -> ListingFilters:
    criteria = payload.criteria
    return ListingFilters(
        category=criteria.category,
        period=criteria.period,
        query=criteria.query,
        status=criteria.status,
        date_from=criteria.date_from,
        date_to=criteria.date_to,
    )


@app.get("/periods", response_model=PeriodsOut)
def list_periods():
    settings = get_settings()
    return PeriodsOut(
        periods=[label.value for label in PeriodLabel],
        week_start=settings.week_start,
        search_debounce_ms=settings.search_debounce_ms,
    )


@app.post("/categories/flatten", response_model=list[CategoryNodeOut])
def flatten_categories(taxonomy: list[Any] = Body(...)):
    index = flatten(taxonomy)
    return [
        CategoryNodeOut(id=node.id, title=node.title, parent_id=node.parent_id)
        for node in index
    ]


@app.post("/listings/filter", response_model=ListingFilterOut)
def filter_listing(payload: ListingFilterIn):
    service = service_from_payload(payload)
    filters = filters_from_payload(payload)
    try:
        visible = service.visible(payload.records, filters)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    tracker = SelectionTracker(payload.selected_ids)
    visible_ids = service.ids_of(visible)
    summary = service.summary(tracker, visible_ids)
    logging.info(
        "listing_filter: screen=%s total=%s visible=%s selected=%s",
        payload.screen or "-",
        len(payload.records),
        len(visible),
        summary.count,
    )
    return ListingFilterOut(
        records=[dict(record) for record in visible],
        visible_ids=visible_ids,
        total=len(payload.records),
        visible=len(visible),
        selection=SelectionSummaryOut(
            selected_ids=summary.selected_ids,
            visible_selected_ids=summary.visible_selected_ids,
            all_visible_selected=summary.all_visible_selected,
            count=summary.count,
        ),
    )


@app.post("/listings/selection", response_model=SelectionOut)
def update_selection(payload: SelectionIn):
    tracker = SelectionTracker(payload.selected_ids)
    pruned: set = set()
    if payload.action == SelectionAction.toggle:
        for record_id in payload.ids:
            tracker.toggle_row(record_id)
    elif payload.action == SelectionAction.select_all_visible:
        tracker.select_all_visible(payload.ids)
    elif payload.action == SelectionAction.deselect_all_visible:
        tracker.deselect_all_visible(payload.ids)
    elif payload.action == SelectionAction.prune_missing:
        pruned = tracker.prune_missing(payload.ids)
    else:
        tracker.clear()
    return SelectionOut(
        selected_ids=sorted(tracker.selected_ids, key=str),
        count=tracker.count,
        pruned_ids=sorted(pruned, key=str),
    )


@app.get("/screens")
def list_screens():
    return {
        name: {
            "date_fields": list(preset.date_fields),
            "search_fields": [f for f in preset.search_fields if isinstance(f, str)],
        }
        for name, preset in SCREEN_PRESETS.items()
    }
