from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from category_matching import ALL_CATEGORIES

RecordId = Union[int, str]


class SelectionAction(str, Enum):
    toggle = "toggle"
    select_all_visible = "select_all_visible"
    deselect_all_visible = "deselect_all_visible"
    prune_missing = "prune_missing"
    clear = "clear"


class FilterCriteriaIn(BaseModel):
    category: str = ALL_CATEGORIES
    period: str = "All time"
    query: str = Field(default="", max_length=200)
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class ListingFilterIn(BaseModel):
    # taxonomy and records come straight from the marketplace API; their
    # shape is not trusted and is validated by the engine, not here
    taxonomy: list[Any] = Field(default_factory=list)
    records: list[dict[str, Any]] = Field(default_factory=list)
    criteria: FilterCriteriaIn = Field(default_factory=FilterCriteriaIn)
    selected_ids: list[RecordId] = Field(default_factory=list)
    screen: Optional[str] = None
    now: Optional[datetime] = None


class SelectionSummaryOut(BaseModel):
    selected_ids: list[RecordId]
    visible_selected_ids: list[RecordId]
    all_visible_selected: bool
    count: int


class ListingFilterOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    records: list[dict[str, Any]]
    visible_ids: list[RecordId]
    total: int
    visible: int
    selection: SelectionSummaryOut


class SelectionIn(BaseModel):
    selected_ids: list[RecordId] = Field(default_factory=list)
    action: SelectionAction
    ids: list[RecordId] = Field(default_factory=list)


class SelectionOut(BaseModel):
    selected_ids: list[RecordId]
    count: int
    pruned_ids: list[RecordId] = Field(default_factory=list)


class CategoryNodeOut(BaseModel):
    id: Optional[RecordId]
    title: str
    parent_id: Optional[RecordId]


class PeriodsOut(BaseModel):
    periods: list[str]
    week_start: int
    search_debounce_ms: int
