"""ConceptForge - turn free-form text into concept maps.

Extracts concepts, infers typed relationships, enriches and validates the
resulting graph, and renders it as Markdown with an embedded Mermaid
diagram.

    from conceptforge import process_text

    result = process_text("Mapas conceptuales organizan ideas.")
    print(result.content)
"""

__version__ = "0.3.0"

from conceptforge.core.pipeline import ConceptMapPipeline, process_text  # noqa: E402

__all__ = ["__version__", "ConceptMapPipeline", "process_text"]
