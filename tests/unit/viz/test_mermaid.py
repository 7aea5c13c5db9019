"""Tests for Mermaid rendering.

Tests document layout, label escaping, node ids, edge lines and the
rendered-content parser."""

from __future__ import annotations

import pytest

from conceptforge.core.config import RenderConfig, get_style_preset
from conceptforge.core.models import RelationType
from conceptforge.viz.mermaid import (
    NO_CONCEPTS_PLACEHOLDER,
    RESERVED_WORDS,
    MermaidRenderer,
    display_label,
    escape_label,
    parse_diagram,
    safe_node_id,
)
from conceptforge.viz.presentation import PresentationFormatter


@pytest.fixture
def graph(make_concept, make_relationship):
    concepts = [
        make_concept("c1", "relaciones", level=1, importance=2.0, position=50),
        make_concept("c0", "ideas", level=0, importance=5.0, position=10),
        make_concept("c2", "mapas", level=1, importance=3.0, position=0),
    ]
    rels = [
        make_relationship("c0", "c2", RelationType.HIERARCHICAL, label="includes"),
        make_relationship("c0", "c1", RelationType.DESCRIPTIVE, label="is described by"),
    ]
    return concepts, rels


class TestLabels:
    """Tests for label helpers."""

    def test_escape_label(self) -> None:
        assert escape_label('say "hi" | bye') == "say #quot;hi#quot; #124; bye"
        assert escape_label("two\nlines") == "two lines"

    def test_escape_label_hash_first(self) -> None:
        assert escape_label("A#B") == "A#35;B"
        assert escape_label("Item #35; here") == "Item #35;35; here"
        assert escape_label('x#"') == "x#35;#quot;"

    def test_display_label(self, make_concept) -> None:
        assert display_label(make_concept("a", "ideas", level=0)) == "IDEAS"
        assert display_label(make_concept("b", "mapas", level=1)) == "Mapas"

    def test_safe_node_id(self) -> None:
        assert safe_node_id(3) == "n3"
        assert all(safe_node_id(i).lower() not in RESERVED_WORDS for i in range(50))


class TestRender:
    """Tests for MermaidRenderer.render."""

    def test_empty_graph_placeholder(self) -> None:
        assert MermaidRenderer().render([], []) == NO_CONCEPTS_PLACEHOLDER

    def test_document_layout(self, graph) -> None:
        concepts, rels = graph

        content = MermaidRenderer().render(
            concepts, rels, coherence=0.83, summary="- **Concepts:** 3"
        )

        assert content.startswith("# Concept Map\n\n```mermaid\ngraph TD\n")
        assert "**Note:** 3 concepts, 2 relationships, coherence 83%." in content
        assert content.endswith("## Summary\n\n- **Concepts:** 3\n")

    def test_nodes_ordered_by_level_and_importance(self, graph) -> None:
        concepts, rels = graph

        diagram = MermaidRenderer().diagram(concepts, rels)

        assert '    n0["IDEAS"]' in diagram
        assert '    n1["Mapas"]' in diagram
        assert '    n2["Relaciones"]' in diagram
        assert "    class n0 level0;" in diagram

    def test_edges_use_labels(self, graph) -> None:
        concepts, rels = graph

        diagram = MermaidRenderer().diagram(concepts, rels)

        assert '    n0 -->|"includes"| n1' in diagram
        assert '    n0 -->|"is described by"| n2' in diagram
        assert "    linkStyle 0 stroke-width:1px;" in diagram

    def test_class_defs_before_nodes(self, graph) -> None:
        concepts, rels = graph
        lines = MermaidRenderer().diagram(concepts, rels).splitlines()

        first_node = next(i for i, line in enumerate(lines) if '["' in line)
        class_defs = [i for i, line in enumerate(lines) if "classDef" in line]
        assert class_defs and max(class_defs) < first_node
        assert any("font-weight:bold" in lines[i] for i in class_defs)

    def test_icons_and_line_styles_from_formatting(self, graph) -> None:
        concepts, rels = graph
        PresentationFormatter(get_style_preset("educational")).format(concepts, rels)

        diagram = MermaidRenderer().diagram(concepts, rels)

        assert "💡 IDEAS" in diagram or "⭐ IDEAS" in diagram
        assert "stroke-dasharray:6 4" in diagram

    def test_icons_can_be_hidden(self, graph) -> None:
        concepts, rels = graph
        PresentationFormatter(get_style_preset("educational")).format(concepts, rels)

        diagram = MermaidRenderer(RenderConfig(show_icons=False)).diagram(concepts, rels)

        assert '["IDEAS"]' in diagram

    def test_direction_and_title(self, graph) -> None:
        concepts, rels = graph
        config = RenderConfig(title="Biology", direction="LR", include_note=False)

        content = MermaidRenderer(config).render(concepts, rels)

        assert content.startswith("# Biology")
        assert "graph LR" in content
        assert "**Note:**" not in content

    def test_dangling_edges_skipped(self, graph, make_relationship) -> None:
        concepts, rels = graph
        rels = rels + [make_relationship("c0", "ghost")]

        counts = parse_diagram(MermaidRenderer().render(concepts, rels))

        assert counts.edges == 2

    def test_deterministic(self, graph) -> None:
        concepts, rels = graph
        renderer = MermaidRenderer()

        assert renderer.render(concepts, rels) == renderer.render(concepts, rels)

    def test_special_characters_escaped(self, make_concept) -> None:
        concept = make_concept("c", "quote", level=1, original_form='the "quote" | pipe')

        diagram = MermaidRenderer().diagram([concept], [])

        assert '"The #quot;quote#quot; #124; pipe"' in diagram

    def test_hash_in_label_escaped(self, make_concept) -> None:
        concept = make_concept("c", "item", level=1, original_form="item #35; here")

        diagram = MermaidRenderer().diagram([concept], [])

        assert '"Item #35;35; here"' in diagram
        assert parse_diagram(f"```mermaid\n{diagram}```").nodes == 1


class TestParseDiagram:
    """Tests for parse_diagram."""

    def test_counts_match_graph(self, graph) -> None:
        concepts, rels = graph
        content = MermaidRenderer().render(concepts, rels)

        counts = parse_diagram(content)

        assert counts.nodes == 3
        assert counts.edges == 2
        assert counts.node_ids == ["n0", "n1", "n2"]

    def test_legend_nodes_excluded(self, graph) -> None:
        concepts, rels = graph
        config = RenderConfig(show_level_legend=True)
        content = MermaidRenderer(config).render(concepts, rels)

        assert "legend_l0" in content
        assert parse_diagram(content).nodes == 3

    def test_placeholder_has_no_diagram(self) -> None:
        counts = parse_diagram(NO_CONCEPTS_PLACEHOLDER)

        assert (counts.nodes, counts.edges) == (0, 0)
