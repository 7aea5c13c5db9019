"""Conceptual summary for the conclusion stage.

Builds a short, deterministic Markdown digest of the final graph:
concept and level counts, the main concepts, the most frequent
relationship labels, enrichment counters, coherence and a usage
recommendation.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional

from conceptforge.core.models import Concept, Relationship

MAIN_CONCEPT_COUNT = 3
TOP_RELATION_COUNT = 3

# (minimum coherence, recommendation), checked in order
RECOMMENDATIONS = (
    (0.75, "Well connected; suitable for study and review."),
    (0.5, "Usable as an overview; some concepts are loosely connected."),
    (0.0, "Loosely connected; consider refining or expanding the input text."),
)


def recommendation_for(coherence: Optional[float]) -> str:
    """Usage recommendation for a coherence score."""
    if coherence is None:
        return "Validation was skipped; review the map before relying on it."
    for threshold, text in RECOMMENDATIONS:
        if coherence >= threshold:
            return text
    return RECOMMENDATIONS[-1][1]


def main_concepts(concepts: List[Concept], count: int = MAIN_CONCEPT_COUNT) -> List[str]:
    """Labels of the shallowest, most important concepts."""
    ranked = sorted(
        concepts, key=lambda c: (c.level, -(c.importance or 0.0), c.position)
    )
    return [c.label for c in ranked[:count]]


def frequent_relations(
    relationships: List[Relationship], count: int = TOP_RELATION_COUNT
) -> List[str]:
    """Most frequent relationship labels with their counts."""
    counts = Counter(r.label for r in relationships)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [f"{label} ({n})" for label, n in ranked[:count]]


def generate_conceptual_summary(
    concepts: List[Concept],
    relationships: List[Relationship],
    coherence: Optional[float] = None,
    enrichment_stats: Optional[Dict[str, int]] = None,
) -> str:
    """Summarize a concept graph as a Markdown bullet list."""
    if not concepts:
        return "- **Concepts:** none extracted"

    levels = len({c.level for c in concepts})
    level_word = "level" if levels == 1 else "levels"
    lines = [
        f"- **Concepts:** {len(concepts)} across {levels} {level_word}",
        f"- **Relationships:** {len(relationships)}",
        f"- **Main concepts:** {', '.join(main_concepts(concepts))}",
    ]

    relations = frequent_relations(relationships)
    if relations:
        lines.append(f"- **Frequent relationships:** {', '.join(relations)}")

    if enrichment_stats:
        lines.append(
            f"- **Enrichment:** {enrichment_stats.get('definitionsCount', 0)} definitions, "
            f"{enrichment_stats.get('examplesCount', 0)} examples"
        )

    if coherence is not None:
        lines.append(f"- **Coherence:** {round(coherence * 100)}%")

    lines.append(f"- **Recommendation:** {recommendation_for(coherence)}")
    return "\n".join(lines)
