"""Tests for knowledge graph export.

Tests the NetworkX projection and the D3-compatible JSON structure."""

from __future__ import annotations

import json
from pathlib import Path

import networkx as nx

from conceptforge.core.models import RelationType
from conceptforge.viz.graph_export import (
    MAX_LABEL_LENGTH,
    GraphData,
    GraphEdge,
    GraphExporter,
    GraphNode,
    build_knowledge_graph,
    export_knowledge_graph,
)


class TestGraphStructures:
    """Tests for GraphNode, GraphEdge and GraphData."""

    def test_node_label_truncated(self) -> None:
        node = GraphNode(id="n", label="x" * 80)

        assert len(node.to_dict()["label"]) == MAX_LABEL_LENGTH

    def test_edge_to_dict(self) -> None:
        edge = GraphEdge(source="a", target="b", edge_type="causal", visual_weight=2)

        data = edge.to_dict()

        assert data["type"] == "causal"
        assert data["weight"] == 2

    def test_empty_graph_json(self) -> None:
        data = GraphData().to_d3_json()

        assert data == {
            "nodes": [],
            "links": [],
            "metadata": {"title": "Concept Map", "nodeCount": 0, "linkCount": 0},
        }


class TestBuildKnowledgeGraph:
    """Tests for build_knowledge_graph."""

    def test_nodes_and_edges(self, make_concept, make_relationship) -> None:
        concepts = [
            make_concept("a", "ideas", level=0, importance=5.0, definition="Units"),
            make_concept("b", "mapas", level=1, importance=3.0),
        ]
        rels = [make_relationship("a", "b", RelationType.HIERARCHICAL, label="includes")]

        graph = build_knowledge_graph(concepts, rels)

        assert isinstance(graph, nx.DiGraph)
        assert graph.nodes["a"]["definition"] == "Units"
        assert graph.edges["a", "b"]["type"] == "hierarchical"

    def test_dangling_edges_ignored(self, make_concept, make_relationship) -> None:
        graph = build_knowledge_graph(
            [make_concept("a", "ideas")], [make_relationship("a", "ghost")]
        )

        assert graph.number_of_edges() == 0
        assert "ghost" not in graph


class TestExport:
    """Tests for GraphExporter and export_knowledge_graph."""

    def test_export_shape(self, make_concept, make_relationship) -> None:
        concepts = [
            make_concept("a", "ideas", level=0, importance=4.0),
            make_concept("b", "mapas", level=1, importance=2.0),
        ]
        rels = [make_relationship("a", "b")]

        data = export_knowledge_graph(concepts, rels, title="Test")

        assert data["metadata"] == {"title": "Test", "nodeCount": 2, "linkCount": 1}
        node = data["nodes"][0]
        assert node["id"] == "a"
        assert node["size"] == 3.0
        assert node["group"] == 0
        assert data["links"][0]["source"] == "a"

    def test_color_from_formatting(self, make_concept) -> None:
        from conceptforge.viz.presentation import PresentationFormatter

        concept = make_concept("a", "ideas", level=0)
        PresentationFormatter.for_style("modern").format([concept], [])

        data = export_knowledge_graph([concept], [])

        assert data["nodes"][0]["color"] == concept.formatting.color

    def test_to_file(self, temp_dir: Path, make_concept) -> None:
        path = temp_dir / "graph.json"

        export_knowledge_graph([make_concept("a", "ideas")], [], output_path=path)

        assert json.loads(path.read_text(encoding="utf-8"))["metadata"]["nodeCount"] == 1

    def test_from_networkx_defaults(self) -> None:
        graph = nx.DiGraph()
        graph.add_node("x")

        data = GraphExporter().from_networkx(graph)

        assert data.nodes[0].label == "x"
        assert data.nodes[0].color == "#4e79a7"
