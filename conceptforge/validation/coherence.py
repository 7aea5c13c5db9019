"""
Graph Validation and Coherence Scoring.

Filtering
---------
1. **Relevance**: concepts with importance below ``mean * importance_ratio``
   are dropped unless they are level 0 or critical.
2. **Deduplication**: of any two concepts whose names are at least
   ``similarity_threshold`` similar, the more important one is kept
   (the earlier one on ties).
3. **Edges**: relationships with a missing endpoint, self-loops, duplicate
   triples and incoherent edges are dropped. An edge is incoherent when
   its type implies direction between levels that the endpoints do not
   have:

   - ``membership`` ("is part of") needs a source deeper than its target
   - vertical types (hierarchical, classification, composition, example)
     need a source shallower than its target

Coherence
---------
    score = 0.5 * connectivity + 0.3 * level_balance + 0.2 * density

- connectivity: share of concepts touched by at least one edge
- level_balance: 1.0 minus 0.2 for each adjacent level pair where the
  deeper level has more concepts, floored at 0.2
- density: edges per concept, peaking at 1.0 and decaying on both sides

A score below ``coherence_warning_threshold`` produces a LowCoherenceWarning
entry; it never changes control flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from conceptforge.core.config import ValidationConfig
from conceptforge.core.exceptions import LowCoherenceWarning
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, Relationship, RelationType
from conceptforge.enrichment.relationships import VERTICAL_TYPES
from conceptforge.validation.similarity import similarity

logger = get_logger(__name__)

CONNECTIVITY_WEIGHT = 0.5
LEVEL_BALANCE_WEIGHT = 0.3
DENSITY_WEIGHT = 0.2
LEVEL_PENALTY = 0.2
LEVEL_BALANCE_FLOOR = 0.2
TARGET_DENSITY = 1.0


@dataclass
class CoherenceBreakdown:
    """Signals behind a coherence score."""

    connectivity: float = 0.0
    level_balance: float = 0.0
    density: float = 0.0
    score: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "connectivity": round(self.connectivity, 3),
            "levelBalance": round(self.level_balance, 3),
            "density": round(self.density, 3),
            "score": self.score,
        }


def connectivity_ratio(concepts: List[Concept], relationships: List[Relationship]) -> float:
    """Share of concepts touched by any relationship."""
    if not concepts:
        return 0.0
    ids = {c.id for c in concepts}
    touched: Set[str] = set()
    for r in relationships:
        touched.update(x for x in (r.source, r.target) if x in ids)
    return len(touched) / len(ids)


def level_balance_score(concepts: List[Concept]) -> float:
    """Penalize non-pyramidal level distributions."""
    counts: Dict[int, int] = {}
    for c in concepts:
        counts[c.level] = counts.get(c.level, 0) + 1
    levels = sorted(counts)

    score = 1.0
    for shallow, deep in zip(levels, levels[1:]):
        if counts[deep] > counts[shallow]:
            score -= LEVEL_PENALTY
    return max(LEVEL_BALANCE_FLOOR, score)


def density_score(concept_count: int, relationship_count: int) -> float:
    """Piecewise score of edges per concept, 1.0 at the target density."""
    if concept_count <= 0:
        return 0.0
    density = relationship_count / concept_count
    if density <= 0:
        return 0.0
    if density < TARGET_DENSITY:
        return density
    return max(0.0, 1.0 - (density - TARGET_DENSITY) / 2)


def coherence_breakdown(
    concepts: List[Concept], relationships: List[Relationship]
) -> CoherenceBreakdown:
    """Compute coherence signals and the weighted score."""
    if not concepts:
        return CoherenceBreakdown()

    breakdown = CoherenceBreakdown(
        connectivity=connectivity_ratio(concepts, relationships),
        level_balance=level_balance_score(concepts),
        density=density_score(len(concepts), len(relationships)),
    )
    raw = (
        CONNECTIVITY_WEIGHT * breakdown.connectivity
        + LEVEL_BALANCE_WEIGHT * breakdown.level_balance
        + DENSITY_WEIGHT * breakdown.density
    )
    breakdown.score = round(min(1.0, max(0.0, raw)), 2)
    return breakdown


def coherence_score(concepts: List[Concept], relationships: List[Relationship]) -> float:
    """Overall coherence in [0, 1]; 0.0 for an empty graph."""
    return coherence_breakdown(concepts, relationships).score


def is_coherent_edge(relationship: Relationship, source: Concept, target: Concept) -> bool:
    """Check the level direction implied by an edge type."""
    if relationship.type == RelationType.MEMBERSHIP:
        return source.level > target.level
    if relationship.type in VERTICAL_TYPES:
        return source.level < target.level
    return True


@dataclass
class ValidationReport:
    """What validation removed and how coherent the result is."""

    low_importance_removed: int = 0
    duplicates_removed: int = 0
    dangling_removed: int = 0
    incoherent_removed: int = 0
    coherence: CoherenceBreakdown = field(default_factory=CoherenceBreakdown)
    warning: Optional[Dict[str, Any]] = None

    @property
    def concepts_removed(self) -> int:
        return self.low_importance_removed + self.duplicates_removed

    @property
    def relationships_removed(self) -> int:
        return self.dangling_removed + self.incoherent_removed

    def to_dict(self) -> Dict[str, int]:
        return {
            "conceptsRemoved": self.concepts_removed,
            "relationshipsRemoved": self.relationships_removed,
            "lowImportance": self.low_importance_removed,
            "duplicates": self.duplicates_removed,
            "danglingEdges": self.dangling_removed,
            "incoherentEdges": self.incoherent_removed,
        }


class ConceptValidator:
    """Filter concepts and edges, then score coherence."""

    def __init__(self, config: Optional[ValidationConfig] = None) -> None:
        self.config = config or ValidationConfig()

    def validate(
        self, concepts: List[Concept], relationships: List[Relationship]
    ) -> Tuple[List[Concept], List[Relationship], ValidationReport]:
        """Validate a graph.

        Args:
            concepts: Concepts with importance set
            relationships: Candidate relationships

        Returns:
            Tuple of (kept concepts, kept relationships, report)
        """
        report = ValidationReport()

        relevant = self._filter_relevant(concepts)
        report.low_importance_removed = len(concepts) - len(relevant)

        unique = self._deduplicate(relevant)
        report.duplicates_removed = len(relevant) - len(unique)

        kept_edges = self._filter_edges(unique, relationships, report)

        report.coherence = coherence_breakdown(unique, kept_edges)
        score = report.coherence.score
        if unique and score < self.config.coherence_warning_threshold:
            warning = LowCoherenceWarning(score, self.config.coherence_warning_threshold)
            report.warning = warning.to_dict()
            logger.warning("Low coherence", score=score)

        logger.debug(
            "Validation complete",
            concepts_removed=report.concepts_removed,
            relationships_removed=report.relationships_removed,
            coherence=score,
        )
        return unique, kept_edges, report

    def _filter_relevant(self, concepts: List[Concept]) -> List[Concept]:
        if not concepts:
            return []
        mean = sum(c.importance or 0.0 for c in concepts) / len(concepts)
        threshold = mean * self.config.importance_ratio
        return [
            c
            for c in concepts
            if c.level == 0 or c.is_critical or (c.importance or 0.0) >= threshold
        ]

    def _deduplicate(self, concepts: List[Concept]) -> List[Concept]:
        """Keep the more important member of each near-duplicate pair."""
        ranked = sorted(
            enumerate(concepts),
            key=lambda item: (-(item[1].importance or 0.0), item[1].position, item[0]),
        )
        kept: List[Tuple[int, Concept]] = []
        for index, concept in ranked:
            duplicate_of = next(
                (
                    other
                    for _, other in kept
                    if similarity(concept.name, other.name)
                    >= self.config.similarity_threshold
                ),
                None,
            )
            if duplicate_of is not None:
                logger.debug(
                    "Dropping near-duplicate concept",
                    concept=concept.name,
                    kept=duplicate_of.name,
                )
                continue
            kept.append((index, concept))
        return [c for _, c in sorted(kept, key=lambda item: item[0])]

    def _filter_edges(
        self,
        concepts: List[Concept],
        relationships: List[Relationship],
        report: ValidationReport,
    ) -> List[Relationship]:
        by_id = {c.id: c for c in concepts}
        seen: Set[Tuple[str, str, str]] = set()
        kept: List[Relationship] = []

        for r in relationships:
            source = by_id.get(r.source)
            target = by_id.get(r.target)
            if source is None or target is None:
                report.dangling_removed += 1
                continue
            if r.source == r.target or r.key() in seen:
                report.incoherent_removed += 1
                continue
            if not is_coherent_edge(r, source, target):
                report.incoherent_removed += 1
                continue
            seen.add(r.key())
            kept.append(r)

        return kept
