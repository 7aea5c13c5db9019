"""Knowledge graph export.

Projects the final concept graph onto a NetworkX DiGraph and converts it
to D3-compatible JSON (``{nodes, links, metadata}``) for browser-based
visualization. The projection is returned as ``knowledgeGraph`` in
responses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import networkx as nx

from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, Relationship

logger = get_logger(__name__)

# JPL Rule #2: Fixed upper bounds
MAX_NODES = 500
MAX_EDGES = 2000
MAX_LABEL_LENGTH = 50


@dataclass
class GraphNode:
    """A concept node in the exported graph."""

    id: str
    label: str
    level: int = 0
    importance: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)
    size: float = 1.0
    color: str = ""
    group: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Entry of the ``nodes`` list."""
        return {
            "id": self.id,
            "label": self.label[:MAX_LABEL_LENGTH],
            "level": self.level,
            "importance": self.importance,
            "size": self.size,
            "color": self.color,
            "group": self.group,
            **self.metadata,
        }


@dataclass
class GraphEdge:
    """A relationship edge in the exported graph."""

    source: str
    target: str
    edge_type: str = "association"
    label: str = ""
    strength: float = 1.0
    visual_weight: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Entry of the ``links`` list; ``weight`` mirrors visualWeight for d3."""
        return {
            "source": self.source,
            "target": self.target,
            "type": self.edge_type,
            "label": self.label[:MAX_LABEL_LENGTH],
            "strength": self.strength,
            "visualWeight": self.visual_weight,
            "weight": self.visual_weight,
        }


@dataclass
class GraphData:
    """Nodes, edges and title of one exported map."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    title: str = "Concept Map"

    def to_d3_json(self) -> Dict[str, Any]:
        """``{nodes, links, metadata}`` as consumed by d3-force."""
        nodes = [n.to_dict() for n in self.nodes[:MAX_NODES]]
        links = [e.to_dict() for e in self.edges[:MAX_EDGES]]
        return {
            "nodes": nodes,
            "links": links,
            "metadata": {
                "title": self.title,
                "nodeCount": len(nodes),
                "linkCount": len(links),
            },
        }


def build_knowledge_graph(
    concepts: List[Concept], relationships: List[Relationship]
) -> nx.DiGraph:
    """Build a DiGraph with concept and relationship attributes."""
    graph = nx.DiGraph()

    for concept in concepts:
        attrs: Dict[str, Any] = {
            "label": concept.label,
            "level": concept.level,
            "importance": concept.importance or 0.0,
            "isCritical": concept.is_critical,
        }
        if concept.definition is not None:
            attrs["definition"] = concept.definition
        if concept.examples is not None:
            attrs["examples"] = list(concept.examples)
        if concept.related_terms is not None:
            attrs["relatedTerms"] = sorted(concept.related_terms)
        if concept.formatting is not None:
            attrs["formatting"] = concept.formatting.to_dict()
        graph.add_node(concept.id, **attrs)

    for relationship in relationships:
        if relationship.source not in graph or relationship.target not in graph:
            continue
        graph.add_edge(
            relationship.source,
            relationship.target,
            type=relationship.type.value,
            label=relationship.label,
            strength=relationship.strength,
            visualWeight=relationship.visual_weight,
        )

    return graph


# Fallback node colors by level when no style was applied
LEVEL_PALETTE = ("#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f", "#edc949")

# Node attributes promoted to GraphNode fields instead of metadata
_NODE_FIELDS = frozenset({"label", "level", "importance"})


def _node_from_attrs(node_id: Any, attrs: Dict[str, Any]) -> GraphNode:
    level = int(attrs.get("level", 0))
    importance = float(attrs.get("importance", 0.0))
    formatting = attrs.get("formatting") or {}
    return GraphNode(
        id=str(node_id),
        label=str(attrs.get("label", node_id)),
        level=level,
        importance=importance,
        metadata={k: v for k, v in attrs.items() if k not in _NODE_FIELDS},
        size=round(1.0 + importance / 2, 3),
        color=formatting.get("color") or LEVEL_PALETTE[level % len(LEVEL_PALETTE)],
        group=level,
    )


class GraphExporter:
    """Converts a knowledge graph into D3 JSON, in memory or on disk."""

    def from_networkx(self, graph: nx.DiGraph, title: str = "Concept Map") -> GraphData:
        node_items = list(graph.nodes(data=True))[:MAX_NODES]
        edge_items = list(graph.edges(data=True))[:MAX_EDGES]
        return GraphData(
            nodes=[_node_from_attrs(node_id, attrs) for node_id, attrs in node_items],
            edges=[
                GraphEdge(
                    source=str(source),
                    target=str(target),
                    edge_type=attrs.get("type", "association"),
                    label=attrs.get("label", ""),
                    strength=attrs.get("strength", 1.0),
                    visual_weight=attrs.get("visualWeight", 1),
                )
                for source, target, attrs in edge_items
            ],
            title=title,
        )

    def to_file(self, graph_data: GraphData, output_path: Path) -> None:
        payload = json.dumps(graph_data.to_d3_json(), indent=2, ensure_ascii=False)
        output_path.write_text(payload, encoding="utf-8")
        logger.info(
            "Knowledge graph written",
            path=str(output_path),
            nodes=len(graph_data.nodes),
            links=len(graph_data.edges),
        )


def export_knowledge_graph(
    concepts: List[Concept],
    relationships: List[Relationship],
    title: str = "Concept Map",
    output_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Project the graph and return its D3 JSON, optionally writing it too."""
    exporter = GraphExporter()
    data = exporter.from_networkx(build_knowledge_graph(concepts, relationships), title)
    if output_path is not None:
        exporter.to_file(data, output_path)
    return data.to_d3_json()
