"""
Visualization: presentation formatting, Mermaid rendering and knowledge
graph export.
"""

from conceptforge.viz.graph_export import (
    GraphData,
    GraphExporter,
    build_knowledge_graph,
    export_knowledge_graph,
)
from conceptforge.viz.mermaid import (
    NO_CONCEPTS_PLACEHOLDER,
    DiagramCounts,
    MermaidRenderer,
    escape_label,
    parse_diagram,
)
from conceptforge.viz.presentation import PresentationFormatter, icon_for

__all__ = [
    "GraphData",
    "GraphExporter",
    "build_knowledge_graph",
    "export_knowledge_graph",
    "NO_CONCEPTS_PLACEHOLDER",
    "DiagramCounts",
    "MermaidRenderer",
    "escape_label",
    "parse_diagram",
    "PresentationFormatter",
    "icon_for",
]
