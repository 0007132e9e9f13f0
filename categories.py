import logging
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class TaxonomyMissing(ValueError):
    pass


@dataclass(frozen=True)
class CategoryNode:
    id: Hashable
    title: str
    parent_id: Optional[Hashable] = None


@dataclass(frozen=True)
class FlatCategoryIndex:
    nodes: tuple[CategoryNode, ...] = ()
    by_id: Mapping[Hashable, CategoryNode] = field(default_factory=dict)
    children: Mapping[Hashable, tuple[Hashable, ...]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[CategoryNode]:
        return iter(self.nodes)

    def get(self, category_id: Any) -> Optional[CategoryNode]:
        if category_id is None:
            return None
        return self.by_id.get(coerce_id(category_id))

    def find_by_title(
        self, title: str, *, case_insensitive: bool = False
    ) -> Optional[CategoryNode]:
        if case_insensitive:
            wanted = title.strip().lower()
            for node in self.nodes:
                if node.title.strip().lower() == wanted:
                    return node
            return None
        for node in self.nodes:
            if node.title == title:
                return node
        return None

    def children_of(self, category_id: Hashable) -> tuple[Hashable, ...]:
        return self.children.get(category_id, ())

    def siblings_of(self, category_id: Hashable) -> tuple[Hashable, ...]:
        node = self.by_id.get(category_id)
        if node is None or node.parent_id is None:
            return ()
        return tuple(
            child for child in self.children_of(node.parent_id) if child != category_id
        )

    def roots(self) -> list[CategoryNode]:
        return [node for node in self.nodes if node.parent_id is None]


def coerce_id(value: Any) -> Optional[Hashable]:
    """Normalize a category id: ints stay ints, numeric strings become ints.

    Anything else is kept as a stripped string so a malformed id still
    participates in lookups by value.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    return int(number) if number.is_integer() else text


def _node_title(raw: Mapping[str, Any]) -> str:
    title = raw.get("title")
    if title is None:
        title = raw.get("name")
    return "" if title is None else str(title)


def flatten(nested: Optional[Sequence[Any]]) -> FlatCategoryIndex:
    if nested is None:
        raise TaxonomyMissing("Category taxonomy is required")

    nodes: list[CategoryNode] = []
    by_id: dict[Hashable, CategoryNode] = {}
    children: dict[Hashable, list[Hashable]] = {}

    if not isinstance(nested, (list, tuple)):
        logger.debug("flatten: taxonomy is not a list, treating as empty")
        nested = ()

    # explicit stack, children pushed in reverse to keep depth-first order
    stack: list[tuple[Any, Optional[Hashable]]] = [(top, None) for top in reversed(nested)]
    while stack:
        raw, parent_id = stack.pop()
        if not isinstance(raw, Mapping):
            logger.debug("flatten: skipping non-object taxonomy entry %r", type(raw))
            continue
        node = CategoryNode(
            id=coerce_id(raw.get("id")),
            title=_node_title(raw),
            parent_id=parent_id,
        )
        nodes.append(node)
        if node.id is not None:
            by_id.setdefault(node.id, node)
            if parent_id is not None:
                children.setdefault(parent_id, []).append(node.id)
        kids = raw.get("children")
        if isinstance(kids, (list, tuple)):
            stack.extend((kid, node.id) for kid in reversed(kids))

    return FlatCategoryIndex(
        nodes=tuple(nodes),
        by_id=by_id,
        children={key: tuple(ids) for key, ids in children.items()},
    )


def ancestors_and_descendants(
    index: FlatCategoryIndex, category_id: Hashable
) -> set[Hashable]:
    """Ids related to ``category_id`` for filtering purposes.

    Includes the id itself, every descendant at any depth and the
    immediate parent only. Grandparents are deliberately left out.
    """
    related: set[Hashable] = {category_id}
    stack = list(index.children_of(category_id))
    while stack:
        current = stack.pop()
        if current in related:
            continue
        related.add(current)
        stack.extend(index.children_of(current))

    node = index.by_id.get(category_id)
    if node is not None and node.parent_id is not None:
        related.add(node.parent_id)
    return related
