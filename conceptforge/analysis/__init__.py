"""Analysis of finished concept graphs."""

from conceptforge.analysis.summary import (
    generate_conceptual_summary,
    recommendation_for,
)

__all__ = ["generate_conceptual_summary", "recommendation_for"]
