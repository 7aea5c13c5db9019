"""Tests for hierarchy construction."""

from __future__ import annotations

from conceptforge.extraction.hierarchy import (
    MAX_CHILDREN,
    HierarchyBuilder,
    build_hierarchy,
)


class TestHierarchyBuilder:
    """Tests for HierarchyBuilder.build."""

    def test_empty(self) -> None:
        tree = build_hierarchy([])

        assert tree.roots == []
        assert tree.unplaced == []

    def test_children_one_level_below(self, make_concept) -> None:
        concepts = [
            make_concept("a", "alpha", level=0, importance=5.0),
            make_concept("b", "beta", level=1, importance=3.0, position=10),
            make_concept("c", "gamma", level=2, importance=2.0, position=20),
        ]

        tree = build_hierarchy(concepts)

        assert [r.concept_id for r in tree.roots] == ["a"]
        assert tree.parent_map() == {"b": "a", "c": "b"}
        for node in tree.iter_nodes():
            for child in node.children:
                assert child.level == node.level + 1

    def test_promotes_root_when_missing(self, make_concept) -> None:
        concepts = [
            make_concept("a", "alpha", level=1, importance=2.0, position=0),
            make_concept("b", "beta", level=1, importance=4.0, position=5),
        ]

        tree = build_hierarchy(concepts)

        assert concepts[1].level == 0
        assert [r.concept_id for r in tree.roots] == ["b"]
        assert tree.unplaced == []

    def test_child_limit(self, make_concept) -> None:
        concepts = [make_concept("root", "root", level=0, importance=6.0)]
        concepts += [
            make_concept(f"c{i}", f"child{i}", level=1, importance=5.0 - i * 0.1, position=i + 1)
            for i in range(MAX_CHILDREN + 2)
        ]

        tree = build_hierarchy(concepts)

        assert len(tree.roots[0].children) == MAX_CHILDREN
        assert tree.unplaced == ["c4", "c5"]

    def test_children_ordered_by_importance(self, make_concept) -> None:
        concepts = [
            make_concept("r", "root", level=0, importance=6.0),
            make_concept("x", "low", level=1, importance=1.0, position=1),
            make_concept("y", "high", level=1, importance=3.0, position=2),
        ]

        tree = build_hierarchy(concepts)

        assert [c.concept_id for c in tree.roots[0].children] == ["y", "x"]

    def test_each_concept_placed_once(self, make_concept) -> None:
        concepts = [
            make_concept("r1", "first", level=0, importance=6.0, position=0),
            make_concept("r2", "second", level=0, importance=5.0, position=1),
            make_concept("c", "child", level=1, importance=3.0, position=2),
        ]

        tree = build_hierarchy(concepts)
        ids = [n.concept_id for n in tree.iter_nodes()]

        assert sorted(ids) == ["c", "r1", "r2"]
        assert tree.parent_map() == {"c": "r1"}

    def test_level_gap_left_unplaced(self, make_concept) -> None:
        concepts = [
            make_concept("r", "root", level=0, importance=6.0),
            make_concept("d", "deep", level=2, importance=2.0, position=1),
        ]

        tree = build_hierarchy(concepts)

        assert tree.unplaced == ["d"]

    def test_max_children_capped(self) -> None:
        assert HierarchyBuilder(max_children=50).max_children == MAX_CHILDREN
        assert HierarchyBuilder(max_children=0).max_children == 1
