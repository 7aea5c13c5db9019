"""
Graph validation: relevance filtering, deduplication, coherence scoring
and concept count limiting.
"""

from conceptforge.validation.coherence import (
    CoherenceBreakdown,
    ConceptValidator,
    ValidationReport,
    coherence_breakdown,
    coherence_score,
    is_coherent_edge,
)
from conceptforge.validation.similarity import similarity
from conceptforge.validation.truncation import TruncationResult, drop_dangling, truncate

__all__ = [
    "CoherenceBreakdown",
    "ConceptValidator",
    "ValidationReport",
    "coherence_breakdown",
    "coherence_score",
    "is_coherent_edge",
    "similarity",
    "TruncationResult",
    "drop_dangling",
    "truncate",
]
