"""
Core Infrastructure for ConceptForge.

Architecture Position
---------------------
    CLI / API (outermost)
      └── Feature Modules (extraction, enrichment, validation, viz, analysis)
            └── Shared (text utilities)
                  └── **Core** (innermost - you are here)

Components
----------
**Configuration (config/, config_loaders.py)**
    PipelineConfig and its sub-configs as validated dataclasses, style
    presets, and YAML loading with ${VAR:default} expansion.

**Logging (logging.py)**
    Structured logging with context binding and rich console output.
    PipelineLogger records per-stage timings.

**Exceptions (exceptions.py)**
    ConceptForgeError hierarchy with error codes and fix suggestions.

**Models (models.py)**
    Concept, Relationship, HierarchyTree and ConceptMapResult.

**Pipeline (pipeline/)**
    ConceptMapPipeline and process_text(), the orchestrator that drives
    the feature modules. It is the one part of core that imports outward,
    so it is not re-exported here.
"""

from conceptforge.core.exceptions import (
    ConceptForgeError,
    ConfigValidationError,
    InvalidInputError,
    StageFailure,
)

__all__ = [
    "ConceptForgeError",
    "ConfigValidationError",
    "InvalidInputError",
    "StageFailure",
]
