"""
Concept Graph Data Model.

Every entity here is created fresh per pipeline run and never shared
between runs.

    ConceptMapResult
    ├── concepts: List[Concept]
    ├── relationships: List[Relationship]
    ├── hierarchy: HierarchyTree
    ├── content: str                 (rendered Markdown + diagram source)
    ├── metadata: ResultMetadata
    └── knowledge_graph: Dict        (D3-compatible projection)

Python attributes are snake_case; to_dict() emits the camelCase keys used
by the HTTP response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set


class RelationType(str, Enum):
    """Semantic vocabulary for relationship edges."""

    HIERARCHICAL = "hierarchical"
    CAUSAL = "causal"
    SEQUENTIAL = "sequential"
    DESCRIPTIVE = "descriptive"
    EXAMPLE = "example"
    COMPARATIVE = "comparative"
    # Extended taxonomy
    CLASSIFICATION = "classification"
    COMPOSITION = "composition"
    MEMBERSHIP = "membership"
    INFLUENCE = "influence"
    DEPENDENCY = "dependency"
    ASSOCIATION = "association"


@dataclass
class ConceptFormatting:
    """Visual attributes of a concept, independent of any renderer."""

    color: str
    stroke: str
    text_color: str
    shape: str
    font_size: int
    font_family: str
    bold: bool = False
    underline: bool = False
    emphasis: str = "normal"  # strong, normal, subtle
    padding: str = "10px"
    style_class: str = "level0"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "color": self.color,
            "stroke": self.stroke,
            "textColor": self.text_color,
            "shape": self.shape,
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "bold": self.bold,
            "underline": self.underline,
            "emphasis": self.emphasis,
            "padding": self.padding,
            "styleClass": self.style_class,
        }


@dataclass
class EnrichmentFields:
    """Optional semantic fields an enricher may produce for one concept."""

    definition: Optional[str] = None
    examples: List[str] = field(default_factory=list)
    related_terms: Set[str] = field(default_factory=set)
    category: Optional[str] = None
    subcategory: Optional[str] = None

    def is_empty(self) -> bool:
        """Check whether no field was produced."""
        return not (
            self.definition
            or self.examples
            or self.related_terms
            or self.category
            or self.subcategory
        )


@dataclass
class Concept:
    """A node of the concept graph."""

    id: str
    name: str  # Normalized token or phrase
    original_form: str  # As it appears in the source text
    level: int = 0  # 0 = most general
    importance: Optional[float] = None
    frequency: int = 1
    is_critical: bool = False
    position: int = 0  # First character offset in the source text
    origin: str = "token"  # token or heading
    definition: Optional[str] = None
    examples: Optional[List[str]] = None
    related_terms: Optional[Set[str]] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    icon: Optional[str] = None
    formatting: Optional[ConceptFormatting] = None
    visual_properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Display label."""
        return self.original_form or self.name

    def apply_enrichment(
        self,
        fields: EnrichmentFields,
        include_definitions: bool = True,
        include_examples: bool = True,
    ) -> None:
        """Copy enrichment fields without touching identity fields."""
        if include_definitions and fields.definition:
            self.definition = fields.definition
        if include_examples and fields.examples:
            self.examples = list(fields.examples)
        if fields.related_terms:
            self.related_terms = set(fields.related_terms)
        if fields.category:
            self.category = fields.category
        if fields.subcategory:
            self.subcategory = fields.subcategory

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "originalForm": self.original_form,
            "level": self.level,
            "importance": self.importance,
            "frequency": self.frequency,
            "isCritical": self.is_critical,
            "firstOccurrence": self.position,
        }
        if self.definition is not None:
            data["definition"] = self.definition
        if self.examples is not None:
            data["examples"] = list(self.examples)
        if self.related_terms is not None:
            data["relatedTerms"] = sorted(self.related_terms)
        if self.category is not None:
            data["category"] = self.category
        if self.subcategory is not None:
            data["subcategory"] = self.subcategory
        if self.icon is not None:
            data["icon"] = self.icon
        if self.formatting is not None:
            data["formatting"] = self.formatting.to_dict()
        if self.visual_properties:
            data["visualProperties"] = dict(self.visual_properties)
        return data


@dataclass
class Relationship:
    """A directed, typed, weighted edge between two concepts."""

    id: str
    source: str
    target: str
    type: RelationType = RelationType.ASSOCIATION
    label: str = "relates to"
    strength: float = 1.0  # 1-5 scale
    visual_weight: int = 1  # 1-3
    shared_sentences: int = 0
    line_style: Optional[str] = None

    def key(self) -> tuple[str, str, str]:
        """Identity triple used for duplicate detection."""
        return (self.source, self.target, self.type.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "label": self.label,
            "strength": round(self.strength, 3),
            "visualWeight": self.visual_weight,
            "sharedSentences": self.shared_sentences,
        }
        if self.line_style is not None:
            data["lineStyle"] = self.line_style
        return data


@dataclass
class HierarchyNode:
    """A concept placed in the hierarchy tree."""

    concept_id: str
    name: str
    level: int
    importance: float
    children: List[HierarchyNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.concept_id,
            "name": self.name,
            "level": self.level,
            "importance": self.importance,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class HierarchyTree:
    """Rooted forest over concepts, one level per depth."""

    roots: List[HierarchyNode] = field(default_factory=list)
    unplaced: List[str] = field(default_factory=list)  # Concept ids without a parent slot

    def iter_nodes(self) -> Iterator[HierarchyNode]:
        """Yield nodes depth-first, roots in order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def parent_map(self) -> Dict[str, str]:
        """Map child concept id to parent concept id."""
        parents: Dict[str, str] = {}
        for node in self.iter_nodes():
            for child in node.children:
                parents[child.concept_id] = node.concept_id
        return parents

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "root": [r.to_dict() for r in self.roots],
            "unplaced": list(self.unplaced),
        }


@dataclass
class ResultMetadata:
    """Per-run counters, timings and quality signals."""

    processed_at: str = ""
    text_length: int = 0
    concept_count: int = 0
    relationship_count: int = 0
    coherence_score: Optional[float] = None
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    stage_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    stage_timings: Dict[str, float] = field(default_factory=dict)
    validation: Dict[str, int] = field(default_factory=dict)
    truncation: Dict[str, int] = field(default_factory=dict)
    enrichment_stats: Dict[str, int] = field(default_factory=dict)
    semantic_depth: Optional[float] = None
    summary: Optional[str] = None
    style: Optional[str] = None

    @property
    def concepts_removed(self) -> int:
        """Concepts removed by validation and truncation together."""
        return self.validation.get("conceptsRemoved", 0) + self.truncation.get(
            "conceptsRemoved", 0
        )

    @property
    def relationships_removed(self) -> int:
        """Relationships removed by validation and truncation together."""
        return self.validation.get(
            "relationshipsRemoved", 0
        ) + self.truncation.get("relationshipsRemoved", 0)

    def add_warning(self, warning_type: str, message: str, **extra: Any) -> None:
        """Append a non-fatal warning."""
        self.warnings.append({"type": warning_type, "message": message, **extra})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "processedAt": self.processed_at,
            "textLength": self.text_length,
            "conceptCount": self.concept_count,
            "relationshipCount": self.relationship_count,
            "coherenceScore": self.coherence_score,
            "conceptsRemoved": self.concepts_removed,
            "relationshipsRemoved": self.relationships_removed,
            "stageResults": dict(self.stage_results),
            "stageTimings": dict(self.stage_timings),
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.validation:
            data["validation"] = dict(self.validation)
        if self.truncation:
            data["limitationApplied"] = dict(self.truncation)
        if self.enrichment_stats:
            data["enrichmentStats"] = dict(self.enrichment_stats)
        if self.semantic_depth is not None:
            data["semanticDepth"] = self.semantic_depth
        if self.summary is not None:
            data["summary"] = self.summary
        if self.style is not None:
            data["style"] = self.style
        return data


@dataclass
class ConceptMapResult:
    """Top-level aggregate produced by one pipeline run."""

    concepts: List[Concept] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    hierarchy: HierarchyTree = field(default_factory=HierarchyTree)
    content: str = ""
    metadata: ResultMetadata = field(default_factory=ResultMetadata)
    knowledge_graph: Dict[str, Any] = field(default_factory=dict)

    def concept_ids(self) -> Set[str]:
        """Ids of the current concept set."""
        return {c.id for c in self.concepts}

    def get_concept(self, concept_id: str) -> Optional[Concept]:
        """Find a concept by id."""
        for concept in self.concepts:
            if concept.id == concept_id:
                return concept
        return None

    def refresh_counts(self) -> None:
        """Sync metadata counters with the current graph."""
        self.metadata.concept_count = len(self.concepts)
        self.metadata.relationship_count = len(self.relationships)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the response payload shape."""
        return {
            "concepts": [c.to_dict() for c in self.concepts],
            "relationships": [r.to_dict() for r in self.relationships],
            "hierarchy": self.hierarchy.to_dict(),
            "content": self.content,
            "metadata": self.metadata.to_dict(),
            "knowledgeGraph": self.knowledge_graph,
        }
