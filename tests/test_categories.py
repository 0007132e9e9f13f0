import pytest

from categories import TaxonomyMissing, ancestors_and_descendants, coerce_id, flatten

TAXONOMY = [
    {
        "id": 1,
        "title": "Electronics",
        "children": [
            {
                "id": 2,
                "title": "Phones",
                "children": [{"id": 4, "title": "Smartphones"}],
            },
            {"id": 3, "title": "Laptops"},
        ],
    },
    {"id": 10, "title": "Fashion", "children": [{"id": 11, "title": "Shoes"}]},
]


def _count(nested) -> int:
    total = 0
    for node in nested:
        total += 1 + _count(node.get("children") or [])
    return total


def test_flatten_keeps_every_node_with_true_parent() -> None:
    index = flatten(TAXONOMY)

    assert len(index) == _count(TAXONOMY) == 6
    assert [n.id for n in index] == [1, 2, 4, 3, 10, 11]
    assert index.get(4).parent_id == 2
    assert index.get(1).parent_id is None
    for node in index:
        assert node.parent_id is None or index.get(node.parent_id) is not None


def test_flatten_tolerates_malformed_children_and_ids() -> None:
    index = flatten(
        [
            {"id": "7", "title": "Books", "children": "oops"},
            {"id": "abc", "name": "Misc", "children": [None, {"id": 8, "title": "Pens"}]},
            "not a node",
        ]
    )

    assert [n.id for n in index] == [7, "abc", 8]
    assert index.get(8).parent_id == "abc"
    assert index.get("abc").title == "Misc"
    assert index.children_of(7) == ()


def test_flatten_rejects_missing_taxonomy() -> None:
    with pytest.raises(TaxonomyMissing):
        flatten(None)


def test_coerce_id() -> None:
    assert coerce_id(" 12 ") == 12
    assert coerce_id(3.0) == 3
    assert coerce_id("4.0") == 4
    assert coerce_id("4.5") == "4.5"
    assert coerce_id("x1") == "x1"
    assert coerce_id("") is None
    assert coerce_id(True) is None


def test_related_ids_include_descendants_and_only_direct_parent() -> None:
    index = flatten(TAXONOMY)

    assert ancestors_and_descendants(index, 1) == {1, 2, 3, 4}
    assert ancestors_and_descendants(index, 2) == {1, 2, 4}
    # grandparent 1 is not pulled in for a sub-subcategory
    assert ancestors_and_descendants(index, 4) == {2, 4}


def test_related_ids_survive_cycles() -> None:
    index = flatten([{"id": 1, "title": "A", "children": [{"id": 2, "title": "B"}]}])
    cyclic = type(index)(
        nodes=index.nodes,
        by_id=index.by_id,
        children={1: (2,), 2: (1,)},
    )

    assert ancestors_and_descendants(cyclic, 1) == {1, 2}


def test_siblings_and_roots() -> None:
    index = flatten(TAXONOMY)

    assert index.siblings_of(2) == (3,)
    assert index.siblings_of(1) == ()
    assert [n.title for n in index.roots()] == ["Electronics", "Fashion"]


def test_find_by_title() -> None:
    index = flatten(TAXONOMY)

    assert index.find_by_title("phones") is None
    assert index.find_by_title(" phones ", case_insensitive=True).id == 2
    assert index.find_by_title("Laptop", case_insensitive=True) is None


def test_flatten_handles_very_deep_nesting() -> None:
    root: dict = {"id": 0, "title": "Level 0"}
    current = root
    for level in range(1, 2000):
        child = {"id": level, "title": f"Level {level}"}
        current["children"] = [child]
        current = child

    index = flatten([root])

    assert len(index) == 2000
    assert [n.id for n in index] == list(range(2000))
    assert index.get(1999).parent_id == 1998
    assert len(ancestors_and_descendants(index, 0)) == 2000


def test_flatten_keeps_sibling_order_under_nested_children() -> None:
    a1 = {"id": 2, "title": "A1", "children": [{"id": 3, "title": "A1a"}]}
    a2 = {"id": 4, "title": "A2"}
    index = flatten(
        [{"id": 1, "title": "A", "children": [a1, a2]}, {"id": 5, "title": "B"}]
    )

    assert [n.id for n in index] == [1, 2, 3, 4, 5]
    assert index.children_of(1) == (2, 4)
