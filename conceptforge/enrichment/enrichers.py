"""
Concept Enricher Interface and Implementations.

Semantic enrichment is pluggable: the pipeline depends only on the
ConceptEnricher contract, a single method producing EnrichmentFields for
one concept. Enrichers never change a concept's identity (id, name, level);
they only return fields, which the runner applies.

Implementations
---------------
**TextualEnricher** (default)
    Derives fields from the source text itself: the first sentence that
    mentions the concept becomes its definition, later mentions become
    examples, co-occurring concepts become related terms.

**StaticLookupEnricher**
    Looks concepts up in a glossary mapping, optionally loaded from YAML.

**NullEnricher**
    Produces nothing. Useful as a test double and for disabling
    enrichment without disabling the stage.

Custom Enrichers
----------------
    class WikiEnricher(ConceptEnricher):
        def enrich(self, concept, context):
            summary = wiki_client.summary(concept.name)  # may raise
            return EnrichmentFields(definition=summary)

        def is_available(self):
            return wiki_client.is_reachable()

Exceptions raised by enrich() are caught by the runner and replaced with
empty fields; they never abort the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

import yaml

from conceptforge.core.exceptions import ConfigValidationError, EnrichmentError
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, EnrichmentFields
from conceptforge.enrichment.relationships import map_concepts_to_sentences
from conceptforge.shared.text_utils import (
    normalize_whitespace,
    sentence_token_sets,
    split_into_sentences,
    tokenize,
    truncate_text,
)

logger = get_logger(__name__)

# JPL Rule #2: Fixed upper bounds
MAX_DEFINITION_LENGTH = 240
MAX_EXAMPLE_LENGTH = 160
MAX_GLOSSARY_ENTRIES = 10000

CATEGORY_BY_LEVEL: Dict[int, str] = {
    0: "core concept",
    1: "supporting concept",
}
DEFAULT_CATEGORY = "specific detail"


def category_for_level(level: int) -> str:
    """Category label for a hierarchy level."""
    return CATEGORY_BY_LEVEL.get(level, DEFAULT_CATEGORY)


@dataclass
class EnrichmentContext:
    """Read-only view of the run shared by every enrichment call."""

    text: str
    sentences: List[str] = field(default_factory=list)
    occurrences: Dict[str, Set[int]] = field(default_factory=dict)
    concept_names: Dict[str, str] = field(default_factory=dict)  # id -> name
    max_examples: int = 3
    max_related_terms: int = 5

    @classmethod
    def build(
        cls,
        text: str,
        concepts: Sequence[Concept],
        max_examples: int = 3,
        max_related_terms: int = 5,
    ) -> "EnrichmentContext":
        """Segment the text once for the whole run."""
        sentences = split_into_sentences(text)
        return cls(
            text=text,
            sentences=sentences,
            occurrences=map_concepts_to_sentences(
                concepts, sentence_token_sets(sentences)
            ),
            concept_names={c.id: c.name for c in concepts},
            max_examples=max_examples,
            max_related_terms=max_related_terms,
        )

    def sentences_for(self, concept_id: str) -> List[str]:
        """Sentences mentioning a concept, in text order."""
        indices = sorted(self.occurrences.get(concept_id, ()))
        return [self.sentences[i] for i in indices]

    def co_occurring(self, concept_id: str) -> List[str]:
        """Names of other concepts sharing a sentence, in concept order."""
        own = self.occurrences.get(concept_id, set())
        return [
            name
            for other_id, name in self.concept_names.items()
            if other_id != concept_id and own & self.occurrences.get(other_id, set())
        ]


class ConceptEnricher(ABC):
    """Interface for semantic enrichment sources."""

    @abstractmethod
    def enrich(self, concept: Concept, context: EnrichmentContext) -> EnrichmentFields:
        """
        Produce enrichment fields for one concept.

        Args:
            concept: A copy of the concept; changes to it are discarded
            context: Shared view of the run

        Returns:
            EnrichmentFields (empty when nothing is known)
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the enricher can be used."""

    def get_metadata(self) -> Dict[str, Any]:
        """Get enricher metadata."""
        return {
            "name": self.__class__.__name__,
            "available": self.is_available(),
        }

    def __repr__(self) -> str:
        """String representation of enricher."""
        available = "available" if self.is_available() else "unavailable"
        return f"{self.__class__.__name__}({available})"


class TextualEnricher(ConceptEnricher):
    """Enrich concepts from the sentences of the source text."""

    def enrich(self, concept: Concept, context: EnrichmentContext) -> EnrichmentFields:
        mentions = context.sentences_for(concept.id)

        if mentions:
            definition = truncate_text(mentions[0], MAX_DEFINITION_LENGTH)
        else:
            definition = f"{concept.label} is a key idea of the text."

        examples = [
            truncate_text(sentence, MAX_EXAMPLE_LENGTH)
            for sentence in mentions[1 : 1 + context.max_examples]
        ]
        related = context.co_occurring(concept.id)[: context.max_related_terms]

        return EnrichmentFields(
            definition=definition,
            examples=examples,
            related_terms=set(related),
            category=category_for_level(concept.level),
            subcategory="section heading" if concept.origin == "heading" else None,
        )

    def is_available(self) -> bool:
        return True


class StaticLookupEnricher(ConceptEnricher):
    """Enrich concepts from a glossary.

    Glossary entries are keyed by term; lookups normalize both sides the
    same way the extractor normalizes tokens.
    """

    def __init__(self, glossary: Mapping[str, Mapping[str, Any]]) -> None:
        if len(glossary) > MAX_GLOSSARY_ENTRIES:
            raise ConfigValidationError(
                f"Glossary exceeds {MAX_GLOSSARY_ENTRIES} entries", field="glossary"
            )
        self._entries: Dict[str, Mapping[str, Any]] = {}
        for term, entry in glossary.items():
            if not isinstance(entry, Mapping):
                raise ConfigValidationError(
                    f"Glossary entry for '{term}' must be a mapping", field="glossary"
                )
            self._entries[self._key(str(term))] = entry

    @classmethod
    def from_yaml(cls, path: Path) -> "StaticLookupEnricher":
        """Load a glossary file.

        Example file::

            ideas:
              definition: Units of thought
              examples: ["A plan", "A theory"]
              related_terms: [concepts]
              category: core concept

        Raises:
            ConfigValidationError: If the file is missing or malformed
        """
        if not path.exists():
            raise ConfigValidationError(f"Glossary not found: {path}", field="glossary")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Could not parse glossary: {e}") from e
        if not isinstance(data, Mapping):
            raise ConfigValidationError("Glossary must be a mapping", field="glossary")
        return cls(data)

    @staticmethod
    def _key(term: str) -> str:
        return " ".join(tokenize(term))

    def __len__(self) -> int:
        return len(self._entries)

    def enrich(self, concept: Concept, context: EnrichmentContext) -> EnrichmentFields:
        entry = self._entries.get(self._key(concept.name))
        if entry is None:
            return EnrichmentFields()

        examples = entry.get("examples") or []
        related = entry.get("related_terms") or []
        if not isinstance(examples, list) or not isinstance(related, list):
            raise EnrichmentError(
                f"Glossary entry for '{concept.name}' has malformed lists"
            )

        definition = entry.get("definition")
        return EnrichmentFields(
            definition=normalize_whitespace(str(definition)) if definition else None,
            examples=[str(e) for e in examples],
            related_terms={str(r) for r in related},
            category=entry.get("category"),
            subcategory=entry.get("subcategory"),
        )

    def is_available(self) -> bool:
        return bool(self._entries)


class NullEnricher(ConceptEnricher):
    """Enricher that never produces fields."""

    def enrich(self, concept: Concept, context: EnrichmentContext) -> EnrichmentFields:
        return EnrichmentFields()

    def is_available(self) -> bool:
        return True


def get_default_enricher(glossary_path: Optional[Path] = None) -> ConceptEnricher:
    """Glossary enricher when a path is given, textual enricher otherwise."""
    if glossary_path is not None:
        return StaticLookupEnricher.from_yaml(glossary_path)
    return TextualEnricher()
