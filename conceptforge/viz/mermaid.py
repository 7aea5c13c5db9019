"""
Mermaid Diagram Rendering.

Serializes a concept graph into Markdown with an embedded Mermaid
flowchart. Rendering is deterministic: the same graph always produces
byte-identical output.

Document layout::

    # Concept Map

    ```mermaid
    graph TD
        classDef level0 fill:#4285f4,stroke:#1a4f9c,color:#ffffff,font-size:18px,font-weight:bold;
        n0["⭐ IDEAS"]
        class n0 level0;
        n1["🔎 Relaciones"]
        class n1 level1;
        n0 -->|"influences"| n1
        linkStyle 0 stroke-width:2px;
    ```

    **Note:** 2 concepts, 1 relationship, coherence 83%.

    ## Summary
    ...

Node ids are generated (n0, n1, ...) in (level, -importance, position)
order and never collide with Mermaid keywords. Labels escape quotes,
pipes and line breaks using Mermaid entity codes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from conceptforge.core.config import RenderConfig, StylePreset, get_style_preset
from conceptforge.core.config.presets import DEFAULT_STYLE
from conceptforge.core.models import Concept, Relationship

NO_CONCEPTS_PLACEHOLDER = (
    "# Concept Map\n\n_No concepts could be extracted from the input text._\n"
)

RESERVED_WORDS = frozenset(
    {
        "end", "graph", "flowchart", "subgraph", "class", "classdef",
        "click", "style", "linkstyle", "direction", "default", "call",
    }
)
LEGEND_PREFIX = "legend_"

LINE_DASHES: Dict[str, str] = {
    "dashed": ",stroke-dasharray:6 4",
    "dotted": ",stroke-dasharray:2 3",
}

_FENCE = re.compile(r"```mermaid\n(.*?)```", re.DOTALL)
_NODE_LINE = re.compile(r'^\s*([A-Za-z_][\w]*)\["')
_EDGE_LINE = re.compile(r'^\s*([A-Za-z_][\w]*)\s+-->\|"[^"]*"\|\s+([A-Za-z_][\w]*)\s*$')


def escape_label(text: str) -> str:
    """Escape a label for use inside a quoted Mermaid string."""
    text = re.sub(r"[\r\n]+", " ", text).strip()
    text = text.replace("#", "#35;")
    return text.replace('"', "#quot;").replace("|", "#124;")


def display_label(concept: Concept) -> str:
    """Upper-case roots, capitalize everything else."""
    label = concept.label
    if concept.level == 0:
        return label.upper()
    return label[:1].upper() + label[1:]


def safe_node_id(index: int, prefix: str = "n") -> str:
    """Generated node id guarded against reserved words."""
    node_id = f"{prefix}{index}"
    if node_id.lower() in RESERVED_WORDS:
        node_id = f"{node_id}_"
    return node_id


def _node_order_key(concept: Concept) -> tuple:
    return (concept.level, -(concept.importance or 0.0), concept.position)


@dataclass
class DiagramCounts:
    """Concept nodes and edges found in rendered content."""

    nodes: int = 0
    edges: int = 0
    node_ids: List[str] = field(default_factory=list)


def parse_diagram(content: str) -> DiagramCounts:
    """Count concept nodes and labeled edges in rendered content.

    Decorative legend nodes are excluded from the node count.
    """
    counts = DiagramCounts()
    for block in _FENCE.findall(content):
        for line in block.splitlines():
            edge = _EDGE_LINE.match(line)
            if edge:
                counts.edges += 1
                continue
            node = _NODE_LINE.match(line)
            if node and not node.group(1).startswith(LEGEND_PREFIX):
                counts.nodes += 1
                counts.node_ids.append(node.group(1))
    return counts


class MermaidRenderer:
    """Render concept graphs as Markdown with a Mermaid flowchart."""

    def __init__(
        self, config: Optional[RenderConfig] = None, preset: Optional[StylePreset] = None
    ) -> None:
        self.config = config or RenderConfig()
        self.preset = preset or get_style_preset(DEFAULT_STYLE)

    def render(
        self,
        concepts: List[Concept],
        relationships: List[Relationship],
        coherence: Optional[float] = None,
        summary: Optional[str] = None,
    ) -> str:
        """Render the full Markdown document.

        Args:
            concepts: Final concepts
            relationships: Final relationships (endpoints must exist)
            coherence: Coherence score for the note line
            summary: Conclusion text for the summary section

        Returns:
            Markdown content; NO_CONCEPTS_PLACEHOLDER for an empty graph
        """
        if not concepts:
            return NO_CONCEPTS_PLACEHOLDER

        parts = [
            f"# {self.config.title}",
            "",
            "```mermaid",
            self.diagram(concepts, relationships),
            "```",
        ]

        if self.config.include_note:
            parts.extend(["", self._note(concepts, relationships, coherence)])
        if self.config.include_summary and summary:
            parts.extend(["", "## Summary", "", summary.rstrip()])

        return "\n".join(parts) + "\n"

    def diagram(self, concepts: List[Concept], relationships: List[Relationship]) -> str:
        """Render only the Mermaid source."""
        ordered = sorted(concepts, key=_node_order_key)
        node_ids = {c.id: safe_node_id(i) for i, c in enumerate(ordered)}

        lines = [f"graph {self.config.direction}"]
        lines.extend(self._class_defs(ordered))

        for concept in ordered:
            node_id = node_ids[concept.id]
            lines.append(f'    {node_id}["{self._node_label(concept)}"]')
            lines.append(f"    class {node_id} {self._style_class(concept)};")

        if self.config.show_level_legend:
            lines.extend(self._legend(ordered))

        link_styles: List[str] = []
        edge_index = 0
        for relationship in relationships:
            source = node_ids.get(relationship.source)
            target = node_ids.get(relationship.target)
            if source is None or target is None:
                continue
            lines.append(
                f'    {source} -->|"{escape_label(relationship.label)}"| {target}'
            )
            link_styles.append(
                f"    linkStyle {edge_index} {self._link_style(relationship)};"
            )
            edge_index += 1

        lines.extend(link_styles)
        return "\n".join(lines)

    def _node_label(self, concept: Concept) -> str:
        label = escape_label(display_label(concept))
        if self.config.show_icons and concept.icon:
            return f"{concept.icon} {label}"
        return label

    @staticmethod
    def _style_class(concept: Concept) -> str:
        if concept.formatting is not None:
            return concept.formatting.style_class
        return f"level{concept.level}"

    def _class_defs(self, concepts: List[Concept]) -> List[str]:
        """One classDef per style class, in first-use order."""
        lines: List[str] = []
        seen = set()
        for concept in concepts:
            name = self._style_class(concept)
            if name in seen:
                continue
            seen.add(name)

            fmt = concept.formatting
            fill = fmt.color if fmt else self.preset.color_for_level(concept.level)
            stroke = fmt.stroke if fmt else self.preset.stroke_color
            color = fmt.text_color if fmt else self.preset.text_color
            size = fmt.font_size if fmt else self.preset.font_size_for_level(concept.level)
            attrs = f"fill:{fill},stroke:{stroke},color:{color},font-size:{size}px"
            if concept.level == 0:
                attrs += ",font-weight:bold"
            lines.append(f"    classDef {name} {attrs};")
        return lines

    def _link_style(self, relationship: Relationship) -> str:
        weight = max(1, min(3, relationship.visual_weight))
        style = f"stroke-width:{self.preset.line_widths[weight - 1]}"
        return style + LINE_DASHES.get(relationship.line_style or "", "")

    def _legend(self, concepts: List[Concept]) -> List[str]:
        lines: List[str] = []
        for level in sorted({c.level for c in concepts}):
            node_id = f"{LEGEND_PREFIX}l{level}"
            lines.append(f'    {node_id}["Level {level}"]')
            lines.append(f"    class {node_id} level{level};")
        return lines

    @staticmethod
    def _note(
        concepts: List[Concept],
        relationships: List[Relationship],
        coherence: Optional[float],
    ) -> str:
        concept_word = "concept" if len(concepts) == 1 else "concepts"
        relation_word = "relationship" if len(relationships) == 1 else "relationships"
        note = (
            f"**Note:** {len(concepts)} {concept_word}, "
            f"{len(relationships)} {relation_word}"
        )
        if coherence is not None:
            note += f", coherence {round(coherence * 100)}%"
        return note + "."
