"""
Shared Utilities for ConceptForge.

Architecture Position
---------------------
    CLI / API (outermost)
      └── Feature Modules (extraction, enrichment, validation, viz, analysis)
            └── **Shared** (you are here - text utilities)
                  └── Core (innermost - config, logging, exceptions, models)

Every stage tokenizes and segments text through text_utils so that a
concept found by extraction is matched identically by later stages.
"""

from conceptforge.shared.text_utils import (
    count_words,
    iter_words,
    normalize_token,
    normalize_whitespace,
    read_text_with_fallback,
    sentence_token_sets,
    split_into_paragraphs,
    split_into_sentences,
    tokenize,
    truncate_text,
)

__all__ = [
    "count_words",
    "iter_words",
    "normalize_token",
    "normalize_whitespace",
    "read_text_with_fallback",
    "sentence_token_sets",
    "split_into_paragraphs",
    "split_into_sentences",
    "tokenize",
    "truncate_text",
]
