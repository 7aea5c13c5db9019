"""
Concept extraction and hierarchy construction.

    from conceptforge.extraction import ConceptExtractor, HierarchyBuilder

    concepts = ConceptExtractor().extract(text)
    tree = HierarchyBuilder().build(concepts)
"""

from conceptforge.extraction.concepts import (
    STOP_WORDS,
    ConceptExtractor,
    extract_concepts,
)
from conceptforge.extraction.hierarchy import (
    MAX_CHILDREN,
    HierarchyBuilder,
    build_hierarchy,
)

__all__ = [
    "STOP_WORDS",
    "ConceptExtractor",
    "extract_concepts",
    "MAX_CHILDREN",
    "HierarchyBuilder",
    "build_hierarchy",
]
