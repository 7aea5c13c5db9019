"""Concept extraction.

Turns raw text into a flat, ranked list of concept candidates using token
frequency. No NLP models are involved: the same text always yields the
same concepts in the same order.

Scoring
-------
Tokens are lower-cased, stripped of punctuation and filtered by length and
a stop-word list. The top-K by frequency (ties: earlier first occurrence)
become concepts with::

    importance = frequency / total_words * 100 + (K - rank) / 3

clamped to [min_importance, max_importance]. The rank also decides the
level (top 3 -> 0, next 5 -> 1, rest -> 2) and the critical flag (rank < 5).

Heading mode
------------
When the text carries Markdown headings, each heading becomes a phrase
concept directly ("#" -> level 0, "##" and deeper -> level 1) and the
remaining tokens are levelled by importance thresholds instead of rank.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from conceptforge.core.config import ExtractionConfig
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept
from conceptforge.shared.text_utils import (
    count_words,
    iter_words,
    sentence_token_sets,
    split_into_sentences,
    tokenize,
)

logger = get_logger(__name__)

# JPL Rule #2: Fixed upper bounds
MAX_HEADINGS = 50

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # Spanish
        "para", "como", "esto", "este", "esta", "estos", "estas", "pero",
        "porque", "sobre", "entre", "cuando", "donde", "desde", "hasta",
        "tambien", "también", "puede", "pueden", "sino", "cada", "todo",
        "todos", "todas", "otro", "otra", "otros", "otras", "mucho", "muchos",
        "mediante", "según", "durante", "ellos", "ellas", "aquí", "ahora",
        "será", "están", "tiene", "tienen", "hace", "hacen", "algunos",
        # English
        "that", "this", "these", "those", "with", "from", "have", "been",
        "were", "will", "would", "could", "should", "their", "there",
        "they", "them", "then", "than", "what", "when", "where", "which",
        "while", "about", "into", "over", "also", "such", "some", "only",
        "more", "most", "other", "each", "very", "because", "through",
        "between", "does", "being", "your",
    }
)

HEADING_PATTERN = re.compile(r"^\s{0,3}(#{1,6})\s+(.+?)\s*#*\s*$", re.MULTILINE)

# Importance bonus for heading concepts, by heading level
HEADING_BONUS: Dict[int, float] = {0: 4.0, 1: 3.0}

# In heading mode, tokens at or above this importance sit at level 1
TOKEN_LEVEL_ONE_THRESHOLD = 4.0


@dataclass
class _Candidate:
    """Intermediate concept candidate before ids are assigned."""

    name: str
    original_form: str
    frequency: int
    position: int
    importance: float
    level: int
    origin: str = "token"


class ConceptExtractor:
    """Extract ranked concept candidates from text."""

    def __init__(self, config: Optional[ExtractionConfig] = None) -> None:
        """Initialize extractor.

        Args:
            config: Extraction settings (defaults if omitted)
        """
        self.config = config or ExtractionConfig()

    def extract(self, text: str) -> List[Concept]:
        """Extract concepts from text.

        Args:
            text: Source text (already validated as non-empty)

        Returns:
            Concepts in rank order, ids concept-0..concept-N. Empty when
            the text has fewer than min_distinct_tokens eligible tokens.
        """
        counts, surfaces, positions = self._count_tokens(text)

        if len(counts) < self.config.min_distinct_tokens:
            logger.info(
                "Too few eligible tokens for a concept map",
                distinct_tokens=len(counts),
                required=self.config.min_distinct_tokens,
            )
            return []

        total_words = max(count_words(text), 1)
        ranked = sorted(counts, key=lambda t: (-counts[t], positions[t]))
        ranked = ranked[: self.config.top_k]

        headings = self._heading_candidates(text, total_words)
        heading_names = {h.name for h in headings}

        candidates: List[_Candidate] = list(headings)
        for rank, token in enumerate(ranked):
            if token in heading_names:
                continue
            importance = self._score(counts[token], total_words, rank)
            if headings:
                level = 1 if importance >= TOKEN_LEVEL_ONE_THRESHOLD else 2
            else:
                level = self._level_for_rank(rank)
            candidates.append(
                _Candidate(
                    name=token,
                    original_form=surfaces[token],
                    frequency=counts[token],
                    position=positions[token],
                    importance=importance,
                    level=level,
                )
            )

        concepts = self._to_concepts(candidates)
        logger.debug(
            "Extracted concepts",
            concepts=len(concepts),
            headings=len(headings),
            distinct_tokens=len(counts),
        )
        return concepts

    def is_eligible(self, token: str) -> bool:
        """Check whether a normalized token can become a concept."""
        return (
            len(token) >= self.config.min_token_length
            and not token.isdigit()
            and token not in STOP_WORDS
        )

    def _count_tokens(
        self, text: str
    ) -> Tuple[Counter, Dict[str, str], Dict[str, int]]:
        """Count eligible tokens, remembering first surface form and offset."""
        counts: Counter = Counter()
        surfaces: Dict[str, str] = {}
        positions: Dict[str, int] = {}

        for token, surface, offset in iter_words(text):
            if not self.is_eligible(token):
                continue
            counts[token] += 1
            if token not in positions:
                positions[token] = offset
                surfaces[token] = surface

        return counts, surfaces, positions

    def _heading_candidates(self, text: str, total_words: int) -> List[_Candidate]:
        """Build phrase concepts from Markdown headings."""
        if not self.config.detect_headings:
            return []

        sentence_tokens = sentence_token_sets(split_into_sentences(text))
        candidates: List[_Candidate] = []
        seen = set()

        for match in HEADING_PATTERN.finditer(text):
            if len(candidates) >= MAX_HEADINGS:
                logger.warning("Heading limit reached", limit=MAX_HEADINGS)
                break
            heading_text = match.group(2).strip()
            tokens = tokenize(heading_text)
            name = " ".join(tokens)
            if not name or name in seen:
                continue
            seen.add(name)

            token_set = set(tokens)
            frequency = sum(1 for s in sentence_tokens if token_set <= s) or 1
            level = 0 if len(match.group(1)) == 1 else 1
            importance = self._clamp(
                frequency / total_words * 100 + HEADING_BONUS[level]
            )
            candidates.append(
                _Candidate(
                    name=name,
                    original_form=heading_text,
                    frequency=frequency,
                    position=match.start(2),
                    importance=importance,
                    level=level,
                    origin="heading",
                )
            )

        return candidates

    def _score(self, frequency: int, total_words: int, rank: int) -> float:
        """Frequency share plus a rank bonus, clamped."""
        position_bonus = (self.config.top_k - rank) / 3
        return self._clamp(frequency / total_words * 100 + position_bonus)

    def _clamp(self, value: float) -> float:
        bounded = max(self.config.min_importance, min(self.config.max_importance, value))
        return round(bounded, 3)

    def _level_for_rank(self, rank: int) -> int:
        first, second = self.config.level_cutoffs
        if rank < first:
            return 0
        if rank < second:
            return 1
        return 2

    def _to_concepts(self, candidates: List[_Candidate]) -> List[Concept]:
        """Assign ids and critical flags."""
        by_importance = sorted(
            range(len(candidates)), key=lambda i: (-candidates[i].importance, i)
        )
        critical = set(by_importance[: self.config.critical_count])

        return [
            Concept(
                id=f"concept-{index}",
                name=c.name,
                original_form=c.original_form,
                level=c.level,
                importance=c.importance,
                frequency=c.frequency,
                is_critical=index in critical,
                position=c.position,
                origin=c.origin,
            )
            for index, c in enumerate(candidates)
        ]


def extract_concepts(
    text: str, config: Optional[ExtractionConfig] = None
) -> List[Concept]:
    """Convenience wrapper around ConceptExtractor.extract."""
    return ConceptExtractor(config).extract(text)
