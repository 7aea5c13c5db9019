"""
Concept Map Pipeline.

Orchestrates the text-to-graph transformation for one request. Stages run
strictly in order on a state object created fresh per run; nothing is
shared between runs.

    text
     │
     ├─ organization   extract concepts, build hierarchy
     ├─ reasoning      detect and classify relationships
     ├─ enrichment     definitions, examples, related terms (batched)
     ├─ validation     filter, deduplicate, score coherence
     ├─ truncation     keep the maxConcepts most important concepts
     ├─ aesthetics     apply the style preset
     ├─ conclusion     conceptual summary
     └─ rendering      Markdown + Mermaid, knowledge graph
     │
     ▼
    ConceptMapResult

Concept extraction, truncation and rendering always run; the stage flags
gate everything else. With organization disabled concepts are still
extracted but no hierarchy tree is built.

Failure handling
----------------
- Empty, blank or non-string text raises InvalidInputError before any
  stage runs.
- Any exception escaping a stage is wrapped in StageFailure. Depending on
  ``on_stage_failure`` it propagates ("raise") or yields a fresh
  zero-concept placeholder result ("placeholder"). A partially populated
  result is never returned.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, TypeVar, Union

from conceptforge.analysis.summary import generate_conceptual_summary
from conceptforge.core.config import PipelineConfig, StylePreset, get_style_preset
from conceptforge.core.exceptions import (
    InvalidInputError,
    LowCoherenceWarning,
    StageFailure,
)
from conceptforge.core.logging import PipelineLogger, get_logger
from conceptforge.core.models import (
    Concept,
    ConceptMapResult,
    HierarchyTree,
    Relationship,
    ResultMetadata,
)
from conceptforge.enrichment.enrichers import ConceptEnricher
from conceptforge.enrichment.relationships import RelationshipEngine
from conceptforge.enrichment.semantic import SemanticEnricher, recompute_importance
from conceptforge.extraction.concepts import ConceptExtractor
from conceptforge.extraction.hierarchy import HierarchyBuilder
from conceptforge.validation.coherence import (
    ConceptValidator,
    coherence_score,
    is_coherent_edge,
)
from conceptforge.validation.truncation import truncate
from conceptforge.viz.graph_export import export_knowledge_graph
from conceptforge.viz.mermaid import NO_CONCEPTS_PLACEHOLDER, MermaidRenderer
from conceptforge.viz.presentation import PresentationFormatter

logger = get_logger(__name__)

T = TypeVar("T")

ConfigLike = Union[PipelineConfig, Mapping[str, Any], None]


@dataclass
class _RunState:
    """Mutable state of a single run."""

    text: str
    metadata: ResultMetadata
    concepts: List[Concept] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    hierarchy: HierarchyTree = field(default_factory=HierarchyTree)
    summary: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def resolve_config(config: ConfigLike) -> PipelineConfig:
    """Accept a PipelineConfig, request options, or None."""
    if isinstance(config, PipelineConfig):
        return config
    return PipelineConfig.from_options(config)


class ConceptMapPipeline:
    """Run the concept-map stages for one text at a time."""

    def __init__(
        self,
        config: ConfigLike = None,
        enricher: Optional[ConceptEnricher] = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            config: PipelineConfig, request options mapping, or None for
                defaults. Validated here, once.
            enricher: Knowledge source for the enrichment stage
                (TextualEnricher if omitted)

        Raises:
            ConfigValidationError: If the configuration is malformed
        """
        self.config = resolve_config(config)
        self.enricher = enricher
        self.preset: StylePreset = get_style_preset(self.config.style)

    def run(self, text: Any) -> ConceptMapResult:
        """
        Transform text into a concept map.

        Args:
            text: Source text

        Returns:
            Fully populated ConceptMapResult

        Raises:
            InvalidInputError: If text is empty, blank or not a string
            StageFailure: If a stage fails and on_stage_failure is "raise"
        """
        self._validate_input(text)

        plog = PipelineLogger(uuid.uuid4().hex[:12])
        try:
            result = self._execute(text, plog)
        except StageFailure as e:
            timings = plog.finish(success=False, error=str(e))
            if self.config.on_stage_failure == "placeholder":
                return self._placeholder(text, e, timings)
            raise

        result.metadata.stage_timings = plog.finish(
            success=True, concepts=len(result.concepts)
        )
        return result

    @staticmethod
    def _validate_input(text: Any) -> None:
        if not isinstance(text, str):
            raise InvalidInputError(
                f"text must be a string, got {type(text).__name__}"
            )
        if not text.strip():
            raise InvalidInputError("text required")

    def _stage(self, name: str, plog: PipelineLogger, func: Callable[[], T]) -> T:
        """Run one stage, wrapping unexpected exceptions."""
        plog.start_stage(name)
        try:
            return func()
        except StageFailure:
            raise
        except Exception as e:
            logger.exception("Stage failed", stage=name, run_id=plog.run_id)
            raise StageFailure(name, str(e) or type(e).__name__) from e

    def _execute(self, text: str, plog: PipelineLogger) -> ConceptMapResult:
        stages = self.config.stages
        state = _RunState(
            text=text,
            metadata=ResultMetadata(
                processed_at=_now(), text_length=len(text), style=self.preset.name
            ),
        )
        if not self.config.style_is_known:
            state.metadata.add_warning(
                "unknown_style",
                f"Unknown style '{self.config.style}', using '{self.preset.name}'",
            )

        self._stage("organization", plog, lambda: self._organize(state))
        if not state.concepts:
            return self._empty_result(state)

        if stages.reasoning:
            self._stage("reasoning", plog, lambda: self._reason(state))
        if stages.enrichment:
            self._stage("enrichment", plog, lambda: self._enrich(state))
        if stages.validation:
            self._stage("validation", plog, lambda: self._validate(state))

        self._stage("truncation", plog, lambda: self._truncate(state))

        if stages.aesthetics:
            self._stage("aesthetics", plog, lambda: self._format(state))
        if stages.conclusion:
            self._stage("conclusion", plog, lambda: self._conclude(state))

        return self._stage("rendering", plog, lambda: self._render(state))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _organize(self, state: _RunState) -> None:
        state.concepts = ConceptExtractor(self.config.extraction).extract(state.text)
        if state.concepts and self.config.stages.organization:
            state.hierarchy = HierarchyBuilder().build(state.concepts)
        state.metadata.stage_results["organization"] = {
            "conceptsExtracted": len(state.concepts),
            "hierarchyBuilt": bool(state.hierarchy.roots),
        }

    def _reason(self, state: _RunState) -> None:
        engine = RelationshipEngine(self.config.relationships)
        state.relationships = engine.detect(state.concepts, state.text)
        state.metadata.stage_results["reasoning"] = {
            "relationshipsIdentified": len(state.relationships),
        }

    def _enrich(self, state: _RunState) -> None:
        runner = SemanticEnricher(
            enricher=self.enricher,
            config=self.config.enrichment,
            include_definitions=self.config.include_definitions,
            include_examples=self.config.include_examples,
        )
        report = runner.enrich(state.concepts, state.text)
        state.metadata.enrichment_stats = report.stats
        state.metadata.semantic_depth = report.semantic_depth
        state.metadata.stage_results["enrichment"] = {
            "definitionsAdded": report.definitions_added,
            "examplesAdded": report.examples_added,
            "failures": report.failures,
        }

    @staticmethod
    def _fill_importance(state: _RunState) -> None:
        for concept in state.concepts:
            if concept.importance is None:
                concept.importance = recompute_importance(concept)

    def _validate(self, state: _RunState) -> None:
        self._fill_importance(state)
        validator = ConceptValidator(self.config.validation)
        concepts, relationships, report = validator.validate(
            state.concepts, state.relationships
        )
        state.concepts = concepts
        state.relationships = relationships
        state.metadata.validation = report.to_dict()
        state.metadata.stage_results["validation"] = {
            "coherenceScore": report.coherence.score,
            "conceptsRemoved": report.concepts_removed,
            "relationshipsRemoved": report.relationships_removed,
        }

    def _truncate(self, state: _RunState) -> None:
        """Cap the concept count, then score the surviving map."""
        self._fill_importance(state)
        truncated = truncate(
            state.concepts, state.relationships, self.config.max_concepts
        )
        state.concepts = truncated.concepts
        state.relationships = truncated.relationships
        if truncated.applied:
            state.metadata.truncation = truncated.to_dict()

        if self.config.stages.organization:
            state.hierarchy = HierarchyBuilder().build(state.concepts)
            if self.config.stages.validation:
                self._drop_incoherent(state)
        self._score(state)

    def _drop_incoherent(self, state: _RunState) -> None:
        """Re-check edge direction after a root promotion."""
        by_id = {c.id: c for c in state.concepts}
        kept = [
            r
            for r in state.relationships
            if is_coherent_edge(r, by_id[r.source], by_id[r.target])
        ]
        removed = len(state.relationships) - len(kept)
        if removed:
            state.relationships = kept
            validation = state.metadata.validation
            validation["relationshipsRemoved"] = (
                validation.get("relationshipsRemoved", 0) + removed
            )
            validation["incoherentEdges"] = validation.get("incoherentEdges", 0) + removed

    def _score(self, state: _RunState) -> None:
        score = coherence_score(state.concepts, state.relationships)
        state.metadata.coherence_score = score
        threshold = self.config.validation.coherence_warning_threshold
        if self.config.stages.validation and score < threshold:
            state.metadata.warnings.append(
                LowCoherenceWarning(score, threshold).to_dict()
            )

    def _format(self, state: _RunState) -> None:
        formatter = PresentationFormatter(self.preset)
        applied = formatter.format(state.concepts, state.relationships)
        state.metadata.stage_results["aesthetics"] = {
            "visualStyle": self.preset.name,
            "formatAttributesApplied": applied,
        }

    def _conclude(self, state: _RunState) -> None:
        state.summary = generate_conceptual_summary(
            state.concepts,
            state.relationships,
            coherence=state.metadata.coherence_score,
            enrichment_stats=state.metadata.enrichment_stats or None,
        )
        state.metadata.summary = state.summary
        state.metadata.stage_results["conclusion"] = {
            "summaryLength": len(state.summary),
        }

    def _render(self, state: _RunState) -> ConceptMapResult:
        renderer = MermaidRenderer(self.config.rendering, self.preset)
        content = renderer.render(
            state.concepts,
            state.relationships,
            coherence=state.metadata.coherence_score,
            summary=state.summary,
        )
        result = ConceptMapResult(
            concepts=state.concepts,
            relationships=state.relationships,
            hierarchy=state.hierarchy,
            content=content,
            metadata=state.metadata,
            knowledge_graph=export_knowledge_graph(
                state.concepts, state.relationships, title=self.config.rendering.title
            ),
        )
        result.refresh_counts()
        return result

    # ------------------------------------------------------------------
    # Degenerate results
    # ------------------------------------------------------------------

    def _empty_result(self, state: _RunState) -> ConceptMapResult:
        """Zero concepts: placeholder content, not an error."""
        state.metadata.coherence_score = 0.0
        state.metadata.add_warning(
            "no_concepts", "No concepts could be extracted from the input text"
        )
        result = ConceptMapResult(
            content=NO_CONCEPTS_PLACEHOLDER,
            metadata=state.metadata,
            knowledge_graph=export_knowledge_graph([], []),
        )
        result.refresh_counts()
        return result

    def _placeholder(
        self, text: str, error: StageFailure, timings: dict
    ) -> ConceptMapResult:
        """Fresh zero-concept result after a stage failure."""
        metadata = ResultMetadata(
            processed_at=_now(),
            text_length=len(text),
            coherence_score=0.0,
            stage_timings=timings,
            style=self.preset.name,
        )
        metadata.add_warning("stage_failure", str(error), stage=error.stage)
        result = ConceptMapResult(
            content=NO_CONCEPTS_PLACEHOLDER,
            metadata=metadata,
            knowledge_graph=export_knowledge_graph([], []),
        )
        result.refresh_counts()
        return result


def process_text(
    text: Any,
    config: ConfigLike = None,
    enricher: Optional[ConceptEnricher] = None,
) -> ConceptMapResult:
    """Transform text into a concept map.

    Args:
        text: Source text
        config: PipelineConfig, request options mapping, or None
        enricher: Optional knowledge source for enrichment

    Returns:
        ConceptMapResult

    Example:
        >>> result = process_text("Mapas conceptuales organizan ideas. "
        ...                        "Las ideas se conectan mediante relaciones.")
        >>> result.metadata.concept_count == len(result.concepts)
        True
    """
    return ConceptMapPipeline(config, enricher).run(text)
