"""Concept count limiting.

Truncation is a deterministic transformation, not an error: concepts are
ranked by importance (descending, earlier position on ties), the top N are
kept in their original order, and relationships touching a removed concept
are dropped. Applying it to a graph already within the limit changes
nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, Relationship

logger = get_logger(__name__)


@dataclass
class TruncationResult:
    """Concepts and relationships left after truncation."""

    concepts: List[Concept] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    concepts_removed: int = 0
    relationships_removed: int = 0

    @property
    def applied(self) -> bool:
        """Whether anything was removed."""
        return bool(self.concepts_removed or self.relationships_removed)

    def to_dict(self) -> Dict[str, int]:
        return {
            "conceptsRemoved": self.concepts_removed,
            "relationshipsRemoved": self.relationships_removed,
        }


def drop_dangling(
    relationships: List[Relationship], concept_ids: set
) -> List[Relationship]:
    """Keep relationships whose endpoints both exist."""
    return [
        r for r in relationships if r.source in concept_ids and r.target in concept_ids
    ]


def truncate(
    concepts: List[Concept], relationships: List[Relationship], max_concepts: int
) -> TruncationResult:
    """Limit the graph to max_concepts concepts.

    Args:
        concepts: Current concepts
        relationships: Current relationships
        max_concepts: Maximum concepts to keep (>= 1)

    Returns:
        TruncationResult; the input lists are returned unchanged when the
        graph is already within the limit.
    """
    if len(concepts) <= max_concepts:
        return TruncationResult(concepts=concepts, relationships=relationships)

    order = sorted(
        range(len(concepts)),
        key=lambda i: (-(concepts[i].importance or 0.0), concepts[i].position, i),
    )
    keep = set(order[:max_concepts])
    kept = [c for i, c in enumerate(concepts) if i in keep]
    kept_edges = drop_dangling(relationships, {c.id for c in kept})

    result = TruncationResult(
        concepts=kept,
        relationships=kept_edges,
        concepts_removed=len(concepts) - len(kept),
        relationships_removed=len(relationships) - len(kept_edges),
    )
    logger.info(
        "Truncated concept map",
        max_concepts=max_concepts,
        concepts_removed=result.concepts_removed,
        relationships_removed=result.relationships_removed,
    )
    return result
