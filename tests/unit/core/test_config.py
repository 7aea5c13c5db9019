"""Tests for pipeline configuration, style presets and config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from conceptforge.core.config import (
    DEFAULT_STYLE,
    STAGE_NAMES,
    STYLE_PRESETS,
    AppConfig,
    EnrichmentConfig,
    ExtractionConfig,
    PipelineConfig,
    RelationshipConfig,
    RenderConfig,
    StageConfig,
    get_style_preset,
    is_known_style,
)
from conceptforge.core.config.app import APIConfig, LoggingConfig
from conceptforge.core.config_loaders import config_from_dict, expand_env_vars, load_config
from conceptforge.core.exceptions import ConfigValidationError


class TestPipelineConfigDefaults:
    """Tests for documented defaults."""

    def test_defaults(self) -> None:
        config = PipelineConfig()

        assert config.max_concepts == 20
        assert config.style == DEFAULT_STYLE
        assert config.include_examples is True
        assert config.include_definitions is True
        assert config.stages.enabled() == list(STAGE_NAMES)
        assert config.enrichment.batch_size == 5
        assert config.extraction.top_k == 15
        assert config.on_stage_failure == "raise"

    def test_to_dict(self) -> None:
        data = PipelineConfig().to_dict()

        assert data["maxConcepts"] == 20
        assert set(data["stages"]) == set(STAGE_NAMES)


class TestPipelineConfigValidation:
    """Tests for config validation at construction."""

    @pytest.mark.parametrize("value", [0, -1, 201, "10", 2.5, True])
    def test_invalid_max_concepts(self, value) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            PipelineConfig(max_concepts=value)

        assert exc_info.value.field == "maxConcepts"

    def test_stage_flag_must_be_bool(self) -> None:
        with pytest.raises(ConfigValidationError):
            StageConfig(enrichment="no")

    def test_blank_style_rejected(self) -> None:
        with pytest.raises(ConfigValidationError):
            PipelineConfig(style="  ")

    def test_unknown_failure_policy(self) -> None:
        with pytest.raises(ConfigValidationError):
            PipelineConfig(on_stage_failure="ignore")

    def test_level_cutoffs_must_ascend(self) -> None:
        with pytest.raises(ConfigValidationError):
            ExtractionConfig(level_cutoffs=(8, 3))

    def test_relationship_mode(self) -> None:
        with pytest.raises(ConfigValidationError):
            RelationshipConfig(mode="random")

    def test_enrichment_timeout_positive(self) -> None:
        with pytest.raises(ConfigValidationError):
            EnrichmentConfig(timeout_sec=0)

    def test_render_direction(self) -> None:
        with pytest.raises(ConfigValidationError):
            RenderConfig(direction="UP")


class TestFromOptions:
    """Tests for PipelineConfig.from_options."""

    def test_none_gives_defaults(self) -> None:
        assert PipelineConfig.from_options(None) == PipelineConfig()

    def test_camel_case_options(self) -> None:
        config = PipelineConfig.from_options(
            {
                "maxConcepts": 5,
                "style": "academic",
                "stages": {"enrichment": False},
                "includeExamples": False,
            }
        )

        assert config.max_concepts == 5
        assert config.style == "academic"
        assert config.stages.enrichment is False
        assert config.stages.reasoning is True
        assert config.include_examples is False
        assert config.include_definitions is True

    def test_null_values_fall_back_to_base(self) -> None:
        base = PipelineConfig(max_concepts=7)
        config = PipelineConfig.from_options({"maxConcepts": None}, base=base)

        assert config.max_concepts == 7

    def test_base_stage_flags_inherited(self) -> None:
        base = PipelineConfig(stages=StageConfig(conclusion=False))
        config = PipelineConfig.from_options({"stages": {"enrichment": False}}, base=base)

        assert config.stages.conclusion is False
        assert config.stages.enrichment is False

    def test_unknown_stage_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="Unknown stages"):
            PipelineConfig.from_options({"stages": {"teleport": True}})

    def test_non_mapping_options_rejected(self) -> None:
        with pytest.raises(ConfigValidationError):
            PipelineConfig.from_options(["maxConcepts"])  # type: ignore[arg-type]

    def test_unknown_style_is_allowed(self) -> None:
        config = PipelineConfig.from_options({"style": "neon"})

        assert config.style == "neon"
        assert config.style_is_known is False


class TestStylePresets:
    """Tests for style preset lookup."""

    def test_six_presets(self) -> None:
        assert set(STYLE_PRESETS) == {
            "educational",
            "minimal",
            "colorful",
            "academic",
            "modern",
            "classic",
        }

    def test_unknown_falls_back_to_default(self) -> None:
        assert get_style_preset("neon").name == DEFAULT_STYLE
        assert is_known_style("neon") is False

    def test_level_lookups_reuse_last_entry(self) -> None:
        preset = get_style_preset("educational")

        assert preset.color_for_level(10) == preset.node_colors[-1]
        assert preset.font_size_for_level(0) == preset.font_sizes[0]

    def test_every_preset_has_default_line_style(self) -> None:
        for preset in STYLE_PRESETS.values():
            assert preset.line_style_for("unheard-of") == preset.line_styles["default"]


class TestAppConfig:
    """Tests for server and logging settings."""

    def test_invalid_port(self) -> None:
        with pytest.raises(ConfigValidationError):
            APIConfig(port=0)

    def test_log_level_normalized(self) -> None:
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ConfigValidationError):
            LoggingConfig(level="LOUD")


class TestConfigLoaders:
    """Tests for YAML loading and environment expansion."""

    def test_expand_env_vars_with_default(self, monkeypatch) -> None:
        monkeypatch.delenv("CF_TEST_PORT", raising=False)

        assert expand_env_vars("${CF_TEST_PORT:8123}") == 8123

    def test_expand_env_vars_nested(self, monkeypatch) -> None:
        monkeypatch.setenv("CF_TEST_STYLE", "minimal")
        data = expand_env_vars({"pipeline": {"style": "${CF_TEST_STYLE}"}})

        assert data == {"pipeline": {"style": "minimal"}}

    def test_config_from_dict(self) -> None:
        config = config_from_dict(
            {
                "pipeline": {
                    "max_concepts": 12,
                    "stages": {"conclusion": False},
                    "relationships": {"mode": "structural"},
                },
                "api": {"port": 9000},
            }
        )

        assert config.pipeline.max_concepts == 12
        assert config.pipeline.stages.conclusion is False
        assert config.pipeline.relationships.mode == "structural"
        assert config.api.port == 9000

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ConfigValidationError):
            config_from_dict({"api": {"colour": "red"}})

    def test_load_missing_file_uses_defaults(self, temp_dir: Path) -> None:
        config = load_config(base_path=temp_dir)

        assert isinstance(config, AppConfig)
        assert config.pipeline == PipelineConfig()

    def test_load_yaml_file(self, temp_dir: Path) -> None:
        (temp_dir / "conceptforge.yaml").write_text(
            "pipeline:\n  style: academic\nlogging:\n  level: warning\n",
            encoding="utf-8",
        )

        config = load_config(base_path=temp_dir)

        assert config.pipeline.style == "academic"
        assert config.logging.level == "WARNING"

    def test_load_malformed_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        path.write_text("pipeline: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_env_override(self, temp_dir: Path, monkeypatch) -> None:
        monkeypatch.setenv("CONCEPTFORGE_MAX_CONCEPTS", "9")

        config = load_config(base_path=temp_dir)

        assert config.pipeline.max_concepts == 9
