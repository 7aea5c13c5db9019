"""
Configuration package for ConceptForge.

Re-exports the configuration dataclasses so callers can write:

    from conceptforge.core.config import PipelineConfig, StageConfig
"""

from conceptforge.core.config.app import APIConfig, AppConfig, LoggingConfig
from conceptforge.core.config.pipeline import (
    STAGE_NAMES,
    EnrichmentConfig,
    ExtractionConfig,
    PipelineConfig,
    RelationshipConfig,
    RenderConfig,
    StageConfig,
    ValidationConfig,
)
from conceptforge.core.config.presets import (
    DEFAULT_STYLE,
    STYLE_PRESETS,
    StylePreset,
    get_style_preset,
    is_known_style,
)

__all__ = [
    "APIConfig",
    "AppConfig",
    "LoggingConfig",
    "STAGE_NAMES",
    "EnrichmentConfig",
    "ExtractionConfig",
    "PipelineConfig",
    "RelationshipConfig",
    "RenderConfig",
    "StageConfig",
    "ValidationConfig",
    "DEFAULT_STYLE",
    "STYLE_PRESETS",
    "StylePreset",
    "get_style_preset",
    "is_known_style",
]
