"""Presentation formatting.

Assigns renderer-independent visual attributes from a named style preset:

- concepts: color, shape and font size by level; bold for level-0,
  critical or very important concepts; underline for important level-1
  concepts; an icon by level (star for critical concepts)
- relationships: line style by semantic type and a 1-3 visual weight from
  endpoint importance and edge strength

The output is plain data; diagram renderers read it back.
"""

from __future__ import annotations

import math
from typing import Dict, List

from conceptforge.core.config import StylePreset, get_style_preset
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, ConceptFormatting, Relationship

logger = get_logger(__name__)

LEVEL_ICONS: Dict[int, str] = {0: "💡", 1: "🔎"}
DEFAULT_ICON = "📋"
CRITICAL_ICON = "⭐"

BOLD_IMPORTANCE = 4.0
UNDERLINE_IMPORTANCE = 3.0
SIZE_BY_LEVEL = ("large", "medium")
DEFAULT_SIZE = "small"


def icon_for(concept: Concept) -> str:
    """Icon for a concept: star when critical, otherwise by level."""
    if concept.is_critical:
        return CRITICAL_ICON
    return LEVEL_ICONS.get(concept.level, DEFAULT_ICON)


def visual_weight_for(relationship: Relationship, average_importance: float) -> int:
    """Round (average endpoint importance + strength) / 2 into 1-3."""
    raw = math.floor((average_importance + relationship.strength) / 2 + 0.5)
    return max(1, min(3, raw))


class PresentationFormatter:
    """Apply a style preset to concepts and relationships."""

    def __init__(self, preset: StylePreset) -> None:
        self.preset = preset

    @classmethod
    def for_style(cls, style: str) -> "PresentationFormatter":
        """Formatter for a style name, default preset when unknown."""
        return cls(get_style_preset(style))

    def format_concept(self, concept: Concept) -> ConceptFormatting:
        """Visual attributes for one concept."""
        importance = concept.importance or 0.0
        bold = concept.level == 0 or concept.is_critical or importance > BOLD_IMPORTANCE
        underline = concept.level == 1 and importance > UNDERLINE_IMPORTANCE

        if bold:
            emphasis = "strong"
        elif underline or concept.level <= 1:
            emphasis = "normal"
        else:
            emphasis = "subtle"

        return ConceptFormatting(
            color=self.preset.color_for_level(concept.level),
            stroke=self.preset.stroke_color,
            text_color=self.preset.text_color,
            shape=self.preset.shape_for_level(concept.level),
            font_size=self.preset.font_size_for_level(concept.level),
            font_family=self.preset.font_family,
            bold=bold,
            underline=underline,
            emphasis=emphasis,
            padding=self.preset.node_padding,
            style_class=f"level{concept.level}",
        )

    def format(
        self, concepts: List[Concept], relationships: List[Relationship]
    ) -> int:
        """Format the whole graph in place.

        Returns:
            Number of concepts and relationships formatted
        """
        for concept in concepts:
            concept.formatting = self.format_concept(concept)
            concept.icon = icon_for(concept)
            size = (
                SIZE_BY_LEVEL[concept.level]
                if concept.level < len(SIZE_BY_LEVEL)
                else DEFAULT_SIZE
            )
            concept.visual_properties = {
                "size": size,
                "borderWidth": self.preset.line_widths[2 if concept.is_critical else 1],
            }

        importance = {c.id: c.importance or 0.0 for c in concepts}
        for relationship in relationships:
            average = (
                importance.get(relationship.source, 0.0)
                + importance.get(relationship.target, 0.0)
            ) / 2
            relationship.line_style = self.preset.line_style_for(relationship.type.value)
            relationship.visual_weight = visual_weight_for(relationship, average)

        applied = len(concepts) + len(relationships)
        logger.debug("Applied presentation", style=self.preset.name, applied=applied)
        return applied
