"""
Concept Map Pipeline.

    from conceptforge.core.pipeline import process_text

    result = process_text(text, {"maxConcepts": 10, "style": "academic"})
    print(result.content)
"""

from conceptforge.core.pipeline.pipeline import (
    ConceptMapPipeline,
    process_text,
    resolve_config,
)

__all__ = ["ConceptMapPipeline", "process_text", "resolve_config"]
