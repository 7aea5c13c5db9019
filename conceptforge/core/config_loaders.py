"""
Configuration Loading Functions.

Loads AppConfig from YAML with environment variable expansion and
overrides.

Configuration precedence: 1. Env vars, 2. YAML file, 3. Defaults

YAML values may reference the environment with ${VAR_NAME} or
${VAR_NAME:default}:

    api:
      port: ${CONCEPTFORGE_PORT:8000}
    pipeline:
      max_concepts: 25
      style: academic
      stages:
        enrichment: false

Recognized environment overrides:
    CONCEPTFORGE_LOG_LEVEL, CONCEPTFORGE_API_HOST, CONCEPTFORGE_API_PORT,
    CONCEPTFORGE_STYLE, CONCEPTFORGE_MAX_CONCEPTS
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from conceptforge.core.config.app import APIConfig, AppConfig, LoggingConfig
from conceptforge.core.config.pipeline import (
    EnrichmentConfig,
    ExtractionConfig,
    PipelineConfig,
    RelationshipConfig,
    RenderConfig,
    StageConfig,
    ValidationConfig,
)
from conceptforge.core.exceptions import ConfigValidationError
from conceptforge.core.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAMES = ("conceptforge.yaml", "config.yaml")
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")
_FULL_ENV_PATTERN = re.compile(r"^\$\{[^}]+\}$")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    A string consisting of a single reference is re-parsed as YAML so
    numbers and booleans keep their type.

    Args:
        value: Configuration value (string, dict, list, or primitive)

    Returns:
        Value with all environment variables expanded
    """
    if isinstance(value, str):

        def replace_env_var(match: re.Match) -> str:
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(match.group(1), default_value)

        expanded = _ENV_PATTERN.sub(replace_env_var, value)
        if _FULL_ENV_PATTERN.match(value) and expanded:
            return yaml.safe_load(expanded)
        return expanded
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _section(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigValidationError(f"'{key}' must be a mapping", field=key)
    return dict(value)


def _build_pipeline_config(data: Mapping[str, Any]) -> PipelineConfig:
    """Build PipelineConfig from a parsed YAML mapping."""
    sub_configs = {
        "stages": StageConfig,
        "extraction": ExtractionConfig,
        "relationships": RelationshipConfig,
        "enrichment": EnrichmentConfig,
        "validation": ValidationConfig,
        "rendering": RenderConfig,
    }
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key in sub_configs:
            kwargs[key] = sub_configs[key](**_section(data, key))
        else:
            kwargs[key] = value
    return PipelineConfig(**kwargs)


def config_from_dict(data: Mapping[str, Any]) -> AppConfig:
    """Build AppConfig from a parsed mapping.

    Raises:
        ConfigValidationError: On unknown keys or invalid values
    """
    data = expand_env_vars(dict(data))
    try:
        return AppConfig(
            pipeline=_build_pipeline_config(_section(data, "pipeline")),
            api=APIConfig(**_section(data, "api")),
            logging=LoggingConfig(**_section(data, "logging")),
        )
    except TypeError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply CONCEPTFORGE_* environment variable overrides."""
    level = os.environ.get("CONCEPTFORGE_LOG_LEVEL")
    if level:
        config.logging = LoggingConfig(
            level=level,
            file_path=config.logging.file_path,
            console=config.logging.console,
        )

    host = os.environ.get("CONCEPTFORGE_API_HOST")
    if host:
        config.api.host = host

    port = os.environ.get("CONCEPTFORGE_API_PORT")
    if port:
        if not port.isdigit():
            raise ConfigValidationError(
                f"CONCEPTFORGE_API_PORT must be numeric, got '{port}'", field="api.port"
            )
        config.api = APIConfig(
            host=config.api.host,
            port=int(port),
            cors_origins=config.api.cors_origins,
            max_text_length=config.api.max_text_length,
        )

    overrides: Dict[str, Any] = {}
    style = os.environ.get("CONCEPTFORGE_STYLE")
    if style:
        overrides["style"] = style
    max_concepts = os.environ.get("CONCEPTFORGE_MAX_CONCEPTS")
    if max_concepts:
        if not max_concepts.isdigit():
            raise ConfigValidationError(
                "CONCEPTFORGE_MAX_CONCEPTS must be numeric", field="maxConcepts"
            )
        overrides["maxConcepts"] = int(max_concepts)
    if overrides:
        config.pipeline = PipelineConfig.from_options(overrides, base=config.pipeline)

    return config


def load_config(
    config_path: Optional[Path] = None, base_path: Optional[Path] = None
) -> AppConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to config file. Defaults to conceptforge.yaml or
            config.yaml in base_path.
        base_path: Base path to search. Defaults to current directory.

    Returns:
        AppConfig with all settings.

    Raises:
        ConfigValidationError: If the file exists but is malformed
    """
    base_path = base_path or Path.cwd()

    if config_path is None:
        for filename in CONFIG_FILENAMES:
            candidate = base_path / filename
            if candidate.exists():
                config_path = candidate
                break
        else:
            return _apply_env_overrides(AppConfig())

    if not config_path.exists():
        logger.warning("Config file not found, using defaults", path=str(config_path))
        return _apply_env_overrides(AppConfig())

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Could not parse {config_path.name}: {e}") from e

    if not isinstance(data, Mapping):
        raise ConfigValidationError(f"{config_path.name} must contain a mapping")

    logger.debug("Loaded configuration", path=str(config_path))
    return _apply_env_overrides(config_from_dict(data))
