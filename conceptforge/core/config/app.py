"""
Application configuration.

Aggregates the pipeline defaults with the settings of the outer surfaces
(HTTP server, logging). Loaded from YAML by core.config_loaders.

    AppConfig
    ├── PipelineConfig     # Defaults applied to every request
    ├── APIConfig          # HTTP server settings
    └── LoggingConfig      # Log level and destinations
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from conceptforge.core.config.pipeline import PipelineConfig
from conceptforge.core.exceptions import ConfigValidationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class APIConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_text_length: int = 50000  # Characters accepted per request

    def __post_init__(self) -> None:
        if not 1 <= int(self.port) <= 65535:
            raise ConfigValidationError("api.port must be 1-65535", field="api.port")
        if int(self.max_text_length) < 1:
            raise ConfigValidationError(
                "api.max_text_length must be positive", field="api.max_text_length"
            )


@dataclass
class LoggingConfig:
    """Logging destinations."""

    level: str = "INFO"
    file_path: Optional[Path] = None
    console: bool = True

    def __post_init__(self) -> None:
        self.level = str(self.level).upper()
        if self.level not in LOG_LEVELS:
            raise ConfigValidationError(
                f"logging.level must be one of {LOG_LEVELS}", field="logging.level"
            )
        if self.file_path is not None and not isinstance(self.file_path, Path):
            self.file_path = Path(self.file_path).expanduser()


@dataclass
class AppConfig:
    """Main ConceptForge configuration."""

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    api: APIConfig = field(default_factory=APIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
