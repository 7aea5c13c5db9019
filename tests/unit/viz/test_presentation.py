"""Tests for presentation formatting."""

from __future__ import annotations

import pytest

from conceptforge.core.config import STYLE_PRESETS, get_style_preset
from conceptforge.core.models import RelationType
from conceptforge.viz.presentation import (
    CRITICAL_ICON,
    DEFAULT_ICON,
    LEVEL_ICONS,
    PresentationFormatter,
    icon_for,
    visual_weight_for,
)


class TestIcons:
    """Tests for icon_for."""

    def test_icons_by_level(self, make_concept) -> None:
        assert icon_for(make_concept("a", "a", level=0)) == LEVEL_ICONS[0]
        assert icon_for(make_concept("b", "b", level=1)) == LEVEL_ICONS[1]
        assert icon_for(make_concept("c", "c", level=4)) == DEFAULT_ICON

    def test_critical_icon_wins(self, make_concept) -> None:
        concept = make_concept("a", "a", level=2, is_critical=True)

        assert icon_for(concept) == CRITICAL_ICON


class TestVisualWeight:
    """Tests for visual_weight_for."""

    @pytest.mark.parametrize(
        "importance,strength,expected",
        [(1.0, 1.0, 1), (2.0, 2.0, 2), (2.0, 3.0, 3), (6.0, 5.0, 3), (0.0, 1.0, 1)],
    )
    def test_weight_range(
        self, make_relationship, importance: float, strength: float, expected: int
    ) -> None:
        rel = make_relationship("a", "b", strength=strength)

        assert visual_weight_for(rel, importance) == expected


class TestPresentationFormatter:
    """Tests for PresentationFormatter."""

    def test_root_formatting(self, make_concept) -> None:
        preset = get_style_preset("educational")
        formatting = PresentationFormatter(preset).format_concept(
            make_concept("a", "a", level=0, importance=2.0)
        )

        assert formatting.color == preset.node_colors[0]
        assert formatting.font_size == preset.font_sizes[0]
        assert formatting.bold is True
        assert formatting.emphasis == "strong"
        assert formatting.style_class == "level0"

    def test_underline_for_important_level_one(self, make_concept) -> None:
        formatter = PresentationFormatter.for_style("educational")

        formatting = formatter.format_concept(make_concept("b", "b", level=1, importance=3.5))

        assert formatting.underline is True
        assert formatting.bold is False
        assert formatting.emphasis == "normal"

    def test_subtle_for_deep_concepts(self, make_concept) -> None:
        formatter = PresentationFormatter.for_style("minimal")

        formatting = formatter.format_concept(make_concept("c", "c", level=3, importance=1.0))

        assert formatting.emphasis == "subtle"
        assert formatting.shape == "rectangle"

    def test_format_graph(self, make_concept, make_relationship) -> None:
        concepts = [
            make_concept("a", "a", level=0, importance=5.0, is_critical=True),
            make_concept("b", "b", level=2, importance=2.0),
        ]
        rels = [make_relationship("a", "b", RelationType.CAUSAL, strength=4.0)]
        formatter = PresentationFormatter.for_style("educational")

        applied = formatter.format(concepts, rels)

        assert applied == 3
        assert concepts[0].icon == CRITICAL_ICON
        assert concepts[0].visual_properties == {"size": "large", "borderWidth": "3px"}
        assert concepts[1].visual_properties["size"] == "small"
        assert rels[0].line_style == "thick"
        assert rels[0].visual_weight == 3

    def test_unknown_style_uses_default(self) -> None:
        assert PresentationFormatter.for_style("neon").preset.name == "educational"

    @pytest.mark.parametrize("style", sorted(STYLE_PRESETS))
    def test_every_preset_formats(self, style: str, make_concept, make_relationship) -> None:
        concepts = [make_concept("a", "a", level=0), make_concept("b", "b", level=5)]
        rels = [make_relationship("a", "b", RelationType.DESCRIPTIVE)]

        PresentationFormatter.for_style(style).format(concepts, rels)

        assert all(c.formatting is not None for c in concepts)
        assert rels[0].line_style
