"""Relationship detection and classification.

Infers typed, weighted edges between concepts in three steps:

1. **Detection**
   - ``cooccurrence`` mode: one edge per pair of concepts sharing at least
     one sentence, ``strength = min(shared_sentences + 1, 5)``.
   - ``structural`` mode: an edge wherever a concept sits exactly one level
     below another, with the same strength formula (shared may be zero).

2. **Classification** into the semantic vocabulary of RelationType:
   - Cue words in the shared sentences ("causa", "because", "example", ...)
     pick causal, example, comparative or sequential first.
   - Otherwise TYPE_TABLE is consulted, keyed by orientation (vertical =
     endpoints on different levels) and strength bucket.
   - Several candidates in a cell are resolved by a stable hash of the
     endpoint ids, or by a seeded Random when variety is requested.

3. **Weighting**: ``strength' = clamp(strength * weight, 1, 5)`` and
   ``visual_weight = min(ceil(strength'), 3)``.

Edges point from the more general concept to the more specific one
(lower level, then higher importance, then earlier position). The engine
never emits self-loops or duplicate (source, target, type) triples.
"""

from __future__ import annotations

import hashlib
import math
import random
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from conceptforge.core.config import RelationshipConfig
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, Relationship, RelationType
from conceptforge.shared.text_utils import (
    sentence_token_sets,
    split_into_sentences,
    tokenize,
)

logger = get_logger(__name__)

# JPL Rule #2: Fixed upper bounds
MAX_RELATIONSHIPS = 1000
MAX_STRENGTH = 5.0
MIN_STRENGTH = 1.0
MAX_VISUAL_WEIGHT = 3


@dataclass(frozen=True)
class RelationSpec:
    """Canonical label and strength multiplier of a relation type."""

    label: str
    weight: float


RELATION_SPECS: Dict[RelationType, RelationSpec] = {
    RelationType.CAUSAL: RelationSpec("causes", 1.5),
    RelationType.CLASSIFICATION: RelationSpec("classifies", 1.3),
    RelationType.MEMBERSHIP: RelationSpec("is part of", 1.3),
    RelationType.COMPOSITION: RelationSpec("is composed of", 1.2),
    RelationType.DEPENDENCY: RelationSpec("requires", 1.2),
    RelationType.HIERARCHICAL: RelationSpec("includes", 1.2),
    RelationType.SEQUENTIAL: RelationSpec("precedes", 1.1),
    RelationType.INFLUENCE: RelationSpec("influences", 1.0),
    RelationType.COMPARATIVE: RelationSpec("contrasts with", 1.0),
    RelationType.EXAMPLE: RelationSpec("is illustrated by", 1.0),
    RelationType.DESCRIPTIVE: RelationSpec("is described by", 0.9),
    RelationType.ASSOCIATION: RelationSpec("relates to", 0.8),
}

# Types that only make sense from a shallower to a deeper concept
VERTICAL_TYPES: FrozenSet[RelationType] = frozenset(
    {
        RelationType.HIERARCHICAL,
        RelationType.CLASSIFICATION,
        RelationType.COMPOSITION,
        RelationType.EXAMPLE,
    }
)

# (vertical, bucket) -> candidate types
TYPE_TABLE: Dict[Tuple[bool, str], Tuple[RelationType, ...]] = {
    (True, "strong"): (
        RelationType.CLASSIFICATION,
        RelationType.COMPOSITION,
        RelationType.CAUSAL,
    ),
    (True, "medium"): (
        RelationType.HIERARCHICAL,
        RelationType.DEPENDENCY,
        RelationType.EXAMPLE,
    ),
    (True, "weak"): (RelationType.DESCRIPTIVE,),
    (False, "strong"): (
        RelationType.CAUSAL,
        RelationType.SEQUENTIAL,
        RelationType.COMPARATIVE,
    ),
    (False, "medium"): (
        RelationType.INFLUENCE,
        RelationType.SEQUENTIAL,
        RelationType.DEPENDENCY,
    ),
    (False, "weak"): (RelationType.ASSOCIATION,),
}

# Checked in order; first match wins
CUE_WORDS: Tuple[Tuple[RelationType, FrozenSet[str]], ...] = (
    (
        RelationType.CAUSAL,
        frozenset(
            {
                "causa", "causan", "provoca", "provocan", "produce", "producen",
                "genera", "generan", "porque", "cause", "causes", "because",
                "leads", "produces", "triggers", "results",
            }
        ),
    ),
    (
        RelationType.EXAMPLE,
        frozenset(
            {"ejemplo", "ejemplos", "example", "examples", "instance", "including"}
        ),
    ),
    (
        RelationType.COMPARATIVE,
        frozenset(
            {
                "mientras", "contrario", "diferencia", "similar", "whereas",
                "unlike", "versus", "compared", "difference",
            }
        ),
    ),
    (
        RelationType.SEQUENTIAL,
        frozenset(
            {
                "luego", "después", "antes", "primero", "finalmente",
                "then", "after", "before", "first", "next", "finally",
            }
        ),
    ),
)


def strength_bucket(strength: float) -> str:
    """Bucket a raw co-occurrence strength."""
    if strength >= 4:
        return "strong"
    if strength >= 2:
        return "medium"
    return "weak"


def map_concepts_to_sentences(
    concepts: Sequence[Concept], sentence_tokens: Sequence[Set[str]]
) -> Dict[str, Set[int]]:
    """Sentence indices in which each concept occurs.

    A concept occurs in a sentence when every token of its name does.
    """
    occurrences: Dict[str, Set[int]] = {}
    for concept in concepts:
        tokens = set(tokenize(concept.name))
        occurrences[concept.id] = {
            i for i, sentence in enumerate(sentence_tokens) if tokens and tokens <= sentence
        }
    return occurrences


def _generality_key(concept: Concept) -> tuple:
    return (concept.level, -(concept.importance or 0.0), concept.position)


class RelationshipEngine:
    """Detect, classify and weight relationships between concepts."""

    def __init__(self, config: Optional[RelationshipConfig] = None) -> None:
        self.config = config or RelationshipConfig()
        self._rng: Optional[random.Random] = (
            random.Random(self.config.variety_seed)
            if self.config.variety_seed is not None
            else None
        )

    def detect(self, concepts: List[Concept], text: str) -> List[Relationship]:
        """Build relationships for a concept list.

        Args:
            concepts: Concepts of the current run
            text: Source text providing co-occurrence evidence

        Returns:
            Relationships in deterministic pair order
        """
        sentences = split_into_sentences(text)
        sentence_tokens = sentence_token_sets(sentences)
        occurrences = map_concepts_to_sentences(concepts, sentence_tokens)

        relationships: List[Relationship] = []
        seen: Set[Tuple[str, str, str]] = set()

        for i, first in enumerate(concepts):
            for second in concepts[i + 1 :]:
                if len(relationships) >= MAX_RELATIONSHIPS:
                    logger.warning("Relationship limit reached", limit=MAX_RELATIONSHIPS)
                    return relationships
                if first.id == second.id:
                    continue

                source, target = sorted((first, second), key=_generality_key)
                shared = occurrences[source.id] & occurrences[target.id]
                if not self._is_candidate(source, target, shared):
                    continue

                strength = min(len(shared) + 1, int(MAX_STRENGTH))
                cue_tokens = set().union(*(sentence_tokens[s] for s in shared))
                relationship = self._build(source, target, strength, len(shared), cue_tokens)

                if relationship.key() in seen:
                    continue
                seen.add(relationship.key())
                relationships.append(relationship)

        logger.debug(
            "Detected relationships",
            mode=self.config.mode,
            concepts=len(concepts),
            relationships=len(relationships),
        )
        return relationships

    def classify(
        self,
        source: Concept,
        target: Concept,
        strength: float,
        cue_tokens: Optional[Set[str]] = None,
    ) -> RelationType:
        """Pick the semantic type of an edge."""
        vertical = source.level != target.level

        if self.config.use_cue_words and cue_tokens:
            for relation_type, cues in CUE_WORDS:
                if relation_type in VERTICAL_TYPES and not vertical:
                    continue
                if cues & cue_tokens:
                    return relation_type

        candidates = TYPE_TABLE[(vertical, strength_bucket(strength))]
        return self._choose(candidates, source.id, target.id)

    def _is_candidate(self, source: Concept, target: Concept, shared: Set[int]) -> bool:
        if self.config.mode == "structural":
            return target.level == source.level + 1
        return bool(shared)

    def _choose(
        self, candidates: Tuple[RelationType, ...], source_id: str, target_id: str
    ) -> RelationType:
        """Resolve several equally plausible types."""
        if len(candidates) == 1:
            return candidates[0]
        if self._rng is not None:
            return self._rng.choice(candidates)
        digest = hashlib.sha256(f"{source_id}|{target_id}".encode("utf-8")).hexdigest()
        return candidates[int(digest, 16) % len(candidates)]

    def _build(
        self,
        source: Concept,
        target: Concept,
        strength: float,
        shared_count: int,
        cue_tokens: Set[str],
    ) -> Relationship:
        relation_type = self.classify(source, target, strength, cue_tokens)
        spec = RELATION_SPECS[relation_type]
        weighted = max(MIN_STRENGTH, min(MAX_STRENGTH, strength * spec.weight))

        return Relationship(
            id=f"rel-{source.id}-{target.id}",
            source=source.id,
            target=target.id,
            type=relation_type,
            label=spec.label,
            strength=round(weighted, 3),
            visual_weight=min(math.ceil(weighted), MAX_VISUAL_WEIGHT),
            shared_sentences=shared_count,
        )


def detect_relationships(
    concepts: List[Concept], text: str, config: Optional[RelationshipConfig] = None
) -> List[Relationship]:
    """Convenience wrapper around RelationshipEngine.detect."""
    return RelationshipEngine(config).detect(concepts, text)
