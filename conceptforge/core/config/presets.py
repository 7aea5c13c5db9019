"""Visual Style Presets.

Named presets consumed by the presentation formatter. Keyed by hierarchy
level for nodes and by semantic relationship type for edges.
Unknown names resolve to the default preset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

DEFAULT_STYLE = "educational"


@dataclass(frozen=True)
class StylePreset:
    """Immutable visual settings for one named style."""

    name: str
    node_colors: Tuple[str, ...]  # Indexed by level, last entry reused for deeper levels
    stroke_color: str
    text_color: str
    font_family: str
    font_sizes: Tuple[int, ...]  # Indexed by level, last entry reused
    line_styles: Dict[str, str]  # Relation type -> line style, "default" required
    line_widths: Tuple[str, str, str]  # light, medium, strong
    node_padding: str
    shapes: Tuple[str, ...] = ("stadium", "rounded", "rectangle")

    def color_for_level(self, level: int) -> str:
        """Node fill color for a hierarchy level."""
        return self.node_colors[min(level, len(self.node_colors) - 1)]

    def font_size_for_level(self, level: int) -> int:
        """Font size in px for a hierarchy level."""
        return self.font_sizes[min(level, len(self.font_sizes) - 1)]

    def shape_for_level(self, level: int) -> str:
        """Node shape for a hierarchy level."""
        return self.shapes[min(level, len(self.shapes) - 1)]

    def line_style_for(self, relation_type: str) -> str:
        """Line style for a relationship type."""
        return self.line_styles.get(relation_type, self.line_styles["default"])


STYLE_PRESETS: Dict[str, StylePreset] = {
    "educational": StylePreset(
        name="educational",
        node_colors=("#4285f4", "#34a853", "#fbbc05", "#ea4335"),
        stroke_color="#1a4f9c",
        text_color="#ffffff",
        font_family="Arial, sans-serif",
        font_sizes=(18, 16, 14, 12),
        line_styles={
            "causal": "thick",
            "hierarchical": "normal",
            "classification": "normal",
            "descriptive": "dashed",
            "association": "dashed",
            "default": "normal",
        },
        line_widths=("1px", "2px", "3px"),
        node_padding="10px",
    ),
    "minimal": StylePreset(
        name="minimal",
        node_colors=("#333333", "#666666", "#888888", "#aaaaaa"),
        stroke_color="#222222",
        text_color="#ffffff",
        font_family="Helvetica Neue, sans-serif",
        font_sizes=(16, 14, 12, 10),
        line_styles={
            "descriptive": "dotted",
            "association": "dotted",
            "default": "normal",
        },
        line_widths=("1px", "1.5px", "2px"),
        node_padding="8px",
        shapes=("rectangle",),
    ),
    "colorful": StylePreset(
        name="colorful",
        node_colors=("#ff1493", "#00bfff", "#32cd32", "#ffd700"),
        stroke_color="#5b2a86",
        text_color="#000000",
        font_family="Comic Sans MS, cursive",
        font_sizes=(20, 18, 16, 14),
        line_styles={
            "causal": "thick",
            "hierarchical": "thick",
            "descriptive": "dashed",
            "default": "normal",
        },
        line_widths=("1px", "2px", "3px"),
        node_padding="12px",
        shapes=("circle", "stadium", "rounded"),
    ),
    "academic": StylePreset(
        name="academic",
        node_colors=("#1e40af", "#047857", "#b45309", "#4f46e5"),
        stroke_color="#111827",
        text_color="#ffffff",
        font_family="Times New Roman, serif",
        font_sizes=(16, 15, 14, 13),
        line_styles={
            "descriptive": "dotted",
            "example": "dotted",
            "default": "normal",
        },
        line_widths=("1px", "1.5px", "2px"),
        node_padding="10px",
        shapes=("rectangle",),
    ),
    "modern": StylePreset(
        name="modern",
        node_colors=("#6a0dad", "#4169e1", "#3cb371", "#ff8c00"),
        stroke_color="#2e1a47",
        text_color="#ffffff",
        font_family="Inter, sans-serif",
        font_sizes=(18, 16, 14, 12),
        line_styles={
            "causal": "thick",
            "hierarchical": "normal",
            "descriptive": "dashed",
            "default": "normal",
        },
        line_widths=("1px", "2px", "3px"),
        node_padding="10px",
        shapes=("rounded",),
    ),
    "classic": StylePreset(
        name="classic",
        node_colors=("#000080", "#006400", "#8b0000", "#4b0082"),
        stroke_color="#000000",
        text_color="#ffffff",
        font_family="Georgia, serif",
        font_sizes=(16, 14, 12, 10),
        line_styles={
            "descriptive": "dotted",
            "default": "normal",
        },
        line_widths=("1px", "2px", "2px"),
        node_padding="8px",
        shapes=("rectangle",),
    ),
}


def is_known_style(name: str) -> bool:
    """Check whether a style name resolves to a preset."""
    return name in STYLE_PRESETS


def get_style_preset(name: str) -> StylePreset:
    """Resolve a style name, falling back to the default preset."""
    return STYLE_PRESETS.get(name, STYLE_PRESETS[DEFAULT_STYLE])
