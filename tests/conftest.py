"""
Shared pytest fixtures for ConceptForge tests.

Fixture Organization
--------------------
- **short_text**: Two-sentence Spanish text producing a small graph
- **long_text**: English text producing more than ten concepts
- **heading_text**: Markdown text with headings
- **make_concept / make_relationship**: Builders for hand-made graphs
- **temp_dir**: Temporary directory for file operations
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from conceptforge.core.models import Concept, Relationship, RelationType

SHORT_TEXT = (
    "Mapas conceptuales organizan ideas. Las ideas se conectan mediante relaciones."
)

LONG_TEXT = (
    "Photosynthesis converts sunlight into chemical energy inside plant cells. "
    "Chlorophyll absorbs sunlight and drives photosynthesis in the leaves. "
    "Plant cells store chemical energy as glucose molecules. "
    "Glucose molecules fuel respiration, which releases energy for growth. "
    "Leaves exchange oxygen and carbon dioxide through small pores called stomata. "
    "Stomata regulate water loss, because open pores release water vapour. "
    "Roots absorb water and minerals from the soil. "
    "Minerals support chlorophyll production and healthy leaves. "
    "Growth depends on energy, water, minerals and sunlight."
)

HEADING_TEXT = """# Ecosystems

Ecosystems connect organisms with their environment.

## Producers

Producers capture energy from sunlight. Plants are common producers.

## Consumers

Consumers obtain energy by eating producers or other consumers.
"""


@pytest.fixture
def short_text() -> str:
    """Short Spanish text producing a handful of concepts."""
    return SHORT_TEXT


@pytest.fixture
def long_text() -> str:
    """Text producing more than ten concepts."""
    return LONG_TEXT


@pytest.fixture
def heading_text() -> str:
    """Markdown text with one top-level and two second-level headings."""
    return HEADING_TEXT


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_concept() -> Callable[..., Concept]:
    """Factory for concepts with sensible defaults.

    Example:
        def test_levels(make_concept):
            root = make_concept("c0", "ideas", level=0, importance=5.0)
    """

    def _make(
        concept_id: str,
        name: str,
        level: int = 0,
        importance: float = 1.0,
        position: int = 0,
        **kwargs,
    ) -> Concept:
        return Concept(
            id=concept_id,
            name=name,
            original_form=kwargs.pop("original_form", name),
            level=level,
            importance=importance,
            position=position,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_relationship() -> Callable[..., Relationship]:
    """Factory for relationships."""

    def _make(
        source: str,
        target: str,
        relation_type: RelationType = RelationType.ASSOCIATION,
        strength: float = 2.0,
        **kwargs,
    ) -> Relationship:
        return Relationship(
            id=kwargs.pop("id", f"rel-{source}-{target}"),
            source=source,
            target=target,
            type=relation_type,
            label=kwargs.pop("label", "relates to"),
            strength=strength,
            **kwargs,
        )

    return _make
