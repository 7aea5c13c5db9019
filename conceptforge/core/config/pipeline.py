"""
Pipeline configuration.

A single explicit configuration struct with documented defaults, validated
once at pipeline entry. Stages read their settings from here and never
re-derive defaults on their own.

    PipelineConfig
    ├── StageConfig          # Per-stage enable flags
    ├── ExtractionConfig     # Tokenization and ranking
    ├── RelationshipConfig   # Edge detection and classification
    ├── EnrichmentConfig     # Batching and timeouts
    ├── ValidationConfig     # Filtering and coherence thresholds
    └── RenderConfig         # Markdown/diagram output
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from conceptforge.core.config.presets import DEFAULT_STYLE, is_known_style
from conceptforge.core.exceptions import ConfigValidationError

# JPL Rule #2: Fixed upper bounds
MAX_CONCEPTS_LIMIT = 200
MAX_TOP_K = 100
MAX_BATCH_SIZE = 32
MAX_ENRICHMENT_TIMEOUT_SEC = 60.0

STAGE_NAMES: Tuple[str, ...] = (
    "organization",
    "reasoning",
    "enrichment",
    "validation",
    "aesthetics",
    "conclusion",
)
RELATIONSHIP_MODES = ("cooccurrence", "structural")
FAILURE_POLICIES = ("raise", "placeholder")
DIAGRAM_DIRECTIONS = ("TD", "TB", "BT", "LR", "RL")


def _require_bool(value: Any, name: str) -> None:
    if not isinstance(value, bool):
        raise ConfigValidationError(
            f"{name} must be a boolean, got {type(value).__name__}", field=name
        )


def _require_int(value: Any, name: str, minimum: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(
            f"{name} must be an integer, got {type(value).__name__}", field=name
        )
    if not minimum <= value <= maximum:
        raise ConfigValidationError(
            f"{name} must be between {minimum} and {maximum}, got {value}",
            field=name,
        )


def _require_ratio(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be a number", field=name)
    if not 0.0 <= value <= 1.0:
        raise ConfigValidationError(
            f"{name} must be between 0.0 and 1.0, got {value}", field=name
        )


@dataclass
class StageConfig:
    """Per-stage enable/disable flags."""

    organization: bool = True
    reasoning: bool = True
    enrichment: bool = True
    validation: bool = True
    aesthetics: bool = True
    conclusion: bool = True

    def __post_init__(self) -> None:
        for name in STAGE_NAMES:
            _require_bool(getattr(self, name), f"stages.{name}")

    def is_enabled(self, stage: str) -> bool:
        """Check whether a stage is enabled."""
        return bool(getattr(self, stage))

    def enabled(self) -> list[str]:
        """Names of enabled stages in pipeline order."""
        return [name for name in STAGE_NAMES if self.is_enabled(name)]


@dataclass
class ExtractionConfig:
    """Concept extraction settings."""

    top_k: int = 15  # Candidate tokens kept by frequency
    min_token_length: int = 4
    min_distinct_tokens: int = 4  # Fewer eligible tokens -> zero concepts
    critical_count: int = 5
    level_cutoffs: Tuple[int, int] = (3, 8)  # Rank < 3 -> level 0, < 8 -> level 1
    min_importance: float = 1.0
    max_importance: float = 6.0
    detect_headings: bool = True

    def __post_init__(self) -> None:
        _require_int(self.top_k, "extraction.top_k", 1, MAX_TOP_K)
        _require_int(self.min_token_length, "extraction.min_token_length", 1, 20)
        _require_int(self.min_distinct_tokens, "extraction.min_distinct_tokens", 1, 100)
        _require_int(self.critical_count, "extraction.critical_count", 0, MAX_TOP_K)
        self.level_cutoffs = tuple(self.level_cutoffs)  # type: ignore[assignment]
        if len(self.level_cutoffs) != 2 or self.level_cutoffs[0] > self.level_cutoffs[1]:
            raise ConfigValidationError(
                "extraction.level_cutoffs must be two ascending ranks",
                field="extraction.level_cutoffs",
            )
        if self.min_importance > self.max_importance:
            raise ConfigValidationError(
                "extraction.min_importance must not exceed max_importance",
                field="extraction.min_importance",
            )


@dataclass
class RelationshipConfig:
    """Relationship detection and classification settings."""

    mode: str = "cooccurrence"
    variety_seed: Optional[int] = None  # Seeded label variety; None = hash tie-break
    use_cue_words: bool = True

    def __post_init__(self) -> None:
        if self.mode not in RELATIONSHIP_MODES:
            raise ConfigValidationError(
                f"relationships.mode must be one of {RELATIONSHIP_MODES}",
                field="relationships.mode",
            )
        _require_bool(self.use_cue_words, "relationships.use_cue_words")


@dataclass
class EnrichmentConfig:
    """Semantic enrichment settings."""

    batch_size: int = 5
    timeout_sec: float = 2.0  # Per batch, applies to every concept in it
    max_examples: int = 3
    max_related_terms: int = 5

    def __post_init__(self) -> None:
        _require_int(self.batch_size, "enrichment.batch_size", 1, MAX_BATCH_SIZE)
        _require_int(self.max_examples, "enrichment.max_examples", 0, 3)
        _require_int(self.max_related_terms, "enrichment.max_related_terms", 0, 20)
        if not 0.0 < float(self.timeout_sec) <= MAX_ENRICHMENT_TIMEOUT_SEC:
            raise ConfigValidationError(
                f"enrichment.timeout_sec must be in (0, {MAX_ENRICHMENT_TIMEOUT_SEC}]",
                field="enrichment.timeout_sec",
            )


@dataclass
class ValidationConfig:
    """Filtering and coherence thresholds."""

    importance_ratio: float = 0.4  # Drop below mean importance * ratio
    similarity_threshold: float = 0.8
    coherence_warning_threshold: float = 0.5

    def __post_init__(self) -> None:
        _require_ratio(self.importance_ratio, "validation.importance_ratio")
        _require_ratio(self.similarity_threshold, "validation.similarity_threshold")
        _require_ratio(
            self.coherence_warning_threshold, "validation.coherence_warning_threshold"
        )


@dataclass
class RenderConfig:
    """Markdown and diagram output settings."""

    title: str = "Concept Map"
    direction: str = "TD"
    show_icons: bool = True
    show_level_legend: bool = False
    include_summary: bool = True
    include_note: bool = True

    def __post_init__(self) -> None:
        if self.direction not in DIAGRAM_DIRECTIONS:
            raise ConfigValidationError(
                f"rendering.direction must be one of {DIAGRAM_DIRECTIONS}",
                field="rendering.direction",
            )
        for name in ("show_icons", "show_level_legend", "include_summary", "include_note"):
            _require_bool(getattr(self, name), f"rendering.{name}")


@dataclass
class PipelineConfig:
    """Complete configuration for one concept-map run."""

    max_concepts: int = 20
    style: str = DEFAULT_STYLE
    stages: StageConfig = field(default_factory=StageConfig)
    include_examples: bool = True
    include_definitions: bool = True
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    relationships: RelationshipConfig = field(default_factory=RelationshipConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    rendering: RenderConfig = field(default_factory=RenderConfig)
    on_stage_failure: str = "raise"

    def __post_init__(self) -> None:
        _require_int(self.max_concepts, "maxConcepts", 1, MAX_CONCEPTS_LIMIT)
        if not isinstance(self.style, str) or not self.style.strip():
            raise ConfigValidationError("style must be a non-empty string", field="style")
        _require_bool(self.include_examples, "includeExamples")
        _require_bool(self.include_definitions, "includeDefinitions")
        if self.on_stage_failure not in FAILURE_POLICIES:
            raise ConfigValidationError(
                f"on_stage_failure must be one of {FAILURE_POLICIES}",
                field="on_stage_failure",
            )

    @property
    def style_is_known(self) -> bool:
        """Whether the style resolves to a preset without falling back."""
        return is_known_style(self.style)

    @classmethod
    def from_options(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        base: Optional["PipelineConfig"] = None,
    ) -> "PipelineConfig":
        """Build a config from the external request options shape.

        Args:
            options: Request options (camelCase keys, e.g. maxConcepts)
            base: Config supplying defaults for omitted options

        Returns:
            Validated PipelineConfig

        Raises:
            ConfigValidationError: If options are malformed
        """
        base = base or cls()
        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise ConfigValidationError("options must be an object", field="options")

        stage_options = options.get("stages") or {}
        if not isinstance(stage_options, Mapping):
            raise ConfigValidationError("stages must be an object", field="stages")
        unknown = set(stage_options) - set(STAGE_NAMES)
        if unknown:
            raise ConfigValidationError(
                f"Unknown stages: {', '.join(sorted(unknown))}", field="stages"
            )

        stage_values = {
            name: stage_options.get(name, base.stages.is_enabled(name))
            for name in STAGE_NAMES
        }
        return cls(
            max_concepts=_pick(options, "maxConcepts", base.max_concepts),
            style=_pick(options, "style", base.style),
            stages=StageConfig(**stage_values),
            include_examples=_pick(options, "includeExamples", base.include_examples),
            include_definitions=_pick(
                options, "includeDefinitions", base.include_definitions
            ),
            extraction=base.extraction,
            relationships=base.relationships,
            enrichment=base.enrichment,
            validation=base.validation,
            rendering=base.rendering,
            on_stage_failure=base.on_stage_failure,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the request-facing options."""
        return {
            "maxConcepts": self.max_concepts,
            "style": self.style,
            "stages": {f.name: getattr(self.stages, f.name) for f in fields(StageConfig)},
            "includeExamples": self.include_examples,
            "includeDefinitions": self.include_definitions,
        }


def _pick(options: Mapping[str, Any], key: str, default: Any) -> Any:
    """Option value, treating explicit null as omitted."""
    value = options.get(key)
    return default if value is None else value
