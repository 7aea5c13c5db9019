"""
Graph enrichment: relationship inference and semantic enrichment.

    from conceptforge.enrichment import RelationshipEngine, SemanticEnricher

    relationships = RelationshipEngine().detect(concepts, text)
    report = SemanticEnricher().enrich(concepts, text)
"""

from conceptforge.enrichment.enrichers import (
    ConceptEnricher,
    EnrichmentContext,
    NullEnricher,
    StaticLookupEnricher,
    TextualEnricher,
    get_default_enricher,
)
from conceptforge.enrichment.relationships import (
    RELATION_SPECS,
    VERTICAL_TYPES,
    RelationshipEngine,
    detect_relationships,
)
from conceptforge.enrichment.semantic import EnrichmentReport, SemanticEnricher

__all__ = [
    "ConceptEnricher",
    "EnrichmentContext",
    "NullEnricher",
    "StaticLookupEnricher",
    "TextualEnricher",
    "get_default_enricher",
    "RELATION_SPECS",
    "VERTICAL_TYPES",
    "RelationshipEngine",
    "detect_relationships",
    "EnrichmentReport",
    "SemanticEnricher",
]
