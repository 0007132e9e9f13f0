"""Decide whether a record belongs to the selected category.

Upstream records carry their category in up to three shapes (an embedded
category object, a bare category id, a bare category name), none of them
guaranteed. Each shape is handled by its own strategy; the strategies run
in a fixed order and the first one that reports a match wins.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Mapping, Optional

from categories import (
    CategoryNode,
    FlatCategoryIndex,
    ancestors_and_descendants,
    coerce_id,
)

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All Categories"

EMBEDDED_KEYS = ("category",)
ID_KEYS = ("categoryId", "category_id")
NAME_KEYS = ("categoryName", "category_name")


class MatchOutcome(str, Enum):
    matched = "matched"
    not_matched = "not_matched"
    not_applicable = "not_applicable"


@dataclass(frozen=True)
class CategoryMatch:
    outcome: MatchOutcome
    strategy: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.outcome == MatchOutcome.matched


@dataclass(frozen=True)
class SelectedCategory:
    node: CategoryNode
    related_ids: frozenset[Hashable]
    index: FlatCategoryIndex

    @classmethod
    def build(cls, node: CategoryNode, index: FlatCategoryIndex) -> "SelectedCategory":
        return cls(
            node=node,
            related_ids=frozenset(ancestors_and_descendants(index, node.id)),
            index=index,
        )

    def is_related(
        self, category_id: Optional[Hashable], parent_id: Optional[Hashable]
    ) -> bool:
        if category_id is not None and category_id in self.related_ids:
            return True
        if parent_id is not None and parent_id == self.node.id:
            return True
        if (
            category_id is not None
            and self.node.parent_id is not None
            and self.node.parent_id == category_id
        ):
            return True
        return False


def _first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _normalize(text: Any) -> str:
    return str(text).strip().lower()


def match_embedded(record: Mapping[str, Any], selected: SelectedCategory) -> MatchOutcome:
    embedded = _first_present(record, EMBEDDED_KEYS)
    if not isinstance(embedded, Mapping):
        return MatchOutcome.not_applicable

    category_id = coerce_id(embedded.get("id"))
    parent_id = coerce_id(_first_present(embedded, ("parentId", "parent_id")))
    if selected.is_related(category_id, parent_id):
        return MatchOutcome.matched

    title = _first_present(embedded, ("title", "name"))
    if title is not None and _normalize(title) == _normalize(selected.node.title):
        return MatchOutcome.matched
    return MatchOutcome.not_matched


def match_category_id(record: Mapping[str, Any], selected: SelectedCategory) -> MatchOutcome:
    category_id = coerce_id(_first_present(record, ID_KEYS))
    if not isinstance(category_id, int):
        return MatchOutcome.not_applicable

    if category_id == selected.node.id or category_id in selected.related_ids:
        return MatchOutcome.matched

    owner = selected.index.by_id.get(category_id)
    if (
        owner is not None
        and owner.parent_id is not None
        and selected.node.parent_id is not None
        and owner.parent_id == selected.node.parent_id
    ):
        return MatchOutcome.matched
    return MatchOutcome.not_matched


def match_category_name(record: Mapping[str, Any], selected: SelectedCategory) -> MatchOutcome:
    raw = _first_present(record, NAME_KEYS)
    if raw is None and isinstance(record.get("category"), str):
        raw = record["category"]
    if raw is None:
        return MatchOutcome.not_applicable
    name = _normalize(raw)
    if not name:
        return MatchOutcome.not_applicable

    wanted = _normalize(selected.node.title)
    if name == wanted:
        return MatchOutcome.matched
    if wanted and (name in wanted or wanted in name):
        return MatchOutcome.matched

    node = selected.index.find_by_title(name, case_insensitive=True)
    if node is not None and selected.is_related(node.id, node.parent_id):
        return MatchOutcome.matched
    return MatchOutcome.not_matched


Strategy = Callable[[Mapping[str, Any], SelectedCategory], MatchOutcome]

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("embedded", match_embedded),
    ("category_id", match_category_id),
    ("category_name", match_category_name),
)


class CategoryResolver:
    def __init__(self, index: FlatCategoryIndex) -> None:
        self.index = index
        self._selected_cache: dict[str, Optional[SelectedCategory]] = {}

    def select(self, title: Optional[str]) -> Optional[SelectedCategory]:
        """Resolve a selected title to its node, or None when no filtering applies."""
        if title is None or not title.strip() or title == ALL_CATEGORIES:
            return None
        if title not in self._selected_cache:
            node = self.index.find_by_title(title)
            if node is None or node.id is None:
                logger.debug("category filter %r not in taxonomy, matching all", title)
                self._selected_cache[title] = None
            else:
                self._selected_cache[title] = SelectedCategory.build(node, self.index)
        return self._selected_cache[title]

    def resolve(self, record: Mapping[str, Any], selected_title: Optional[str]) -> CategoryMatch:
        selected = self.select(selected_title)
        if selected is None:
            return CategoryMatch(MatchOutcome.matched)
        if not isinstance(record, Mapping):
            return CategoryMatch(MatchOutcome.not_applicable)

        outcome = MatchOutcome.not_applicable
        for name, strategy in STRATEGIES:
            result = strategy(record, selected)
            if result == MatchOutcome.matched:
                return CategoryMatch(result, name)
            if result == MatchOutcome.not_matched:
                outcome = result
        return CategoryMatch(outcome)

    def matches(self, record: Mapping[str, Any], selected_title: Optional[str]) -> bool:
        return self.resolve(record, selected_title).matched


def matches_category(
    record: Mapping[str, Any], selected_title: Optional[str], index: FlatCategoryIndex
) -> bool:
    return CategoryResolver(index).matches(record, selected_title)
