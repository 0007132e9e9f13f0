from typing import Hashable, Iterable, Optional


class SelectionTracker:
    """Checkbox state for one listing screen.

    Selections survive filter, tab and page changes. They are only dropped
    by an explicit deselect, ``clear`` or ``prune_missing`` after a refetch.
    """

    def __init__(self, selected_ids: Optional[Iterable[Hashable]] = None) -> None:
        self._selected: set[Hashable] = set(selected_ids or ())

    @property
    def selected_ids(self) -> frozenset[Hashable]:
        return frozenset(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    def is_selected(self, record_id: Hashable) -> bool:
        return record_id in self._selected

    def toggle_row(self, record_id: Hashable) -> bool:
        if record_id in self._selected:
            self._selected.discard(record_id)
            return False
        self._selected.add(record_id)
        return True

    def select_all_visible(self, visible_ids: Iterable[Hashable]) -> None:
        self._selected.update(visible_ids)

    def deselect_all_visible(self, visible_ids: Iterable[Hashable]) -> None:
        self._selected.difference_update(visible_ids)

    def is_all_visible_selected(self, visible_ids: Iterable[Hashable]) -> bool:
        visible = set(visible_ids)
        return bool(visible) and visible <= self._selected

    def selected_in(self, visible_ids: Iterable[Hashable]) -> list[Hashable]:
        return [record_id for record_id in visible_ids if record_id in self._selected]

    def prune_missing(self, all_known_ids: Iterable[Hashable]) -> set[Hashable]:
        known = set(all_known_ids)
        stale = self._selected - known
        self._selected -= stale
        return stale

    def clear(self) -> None:
        self._selected.clear()
