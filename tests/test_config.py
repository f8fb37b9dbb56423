"""
Tests for scoring configuration.

Tests cover:
- ScoreConfig validation
- Named profiles
- Environment variables
- YAML config files
"""

import logging

import pytest

from score_engine.buckets import BucketPreset
from score_engine.config import (
    PROFILES,
    CeilingMode,
    ScoreConfig,
    Strategy,
    config_from_env,
    config_from_mapping,
    get_profile,
    load_config,
    parse_enum,
    resolve_config,
)
from score_engine.errors import ConfigError


class TestScoreConfig:
    """ScoreConfig defaults and validation."""

    def test_defaults(self):
        cfg = ScoreConfig()

        assert cfg.strategy is Strategy.FAMILY_WEIGHTED
        assert cfg.ceiling_mode is CeilingMode.ACTUAL_COUNT
        assert cfg.fixed_max_entries == 10
        assert cfg.fixed_max_intensity == 3
        assert cfg.bucket_preset is BucketPreset.TIERED

    def test_accepts_enum_values_and_names(self):
        cfg = ScoreConfig(strategy="primary_intensity", ceiling_mode="FIXED_CONSTANT", bucket_preset="Split")

        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.ceiling_mode is CeilingMode.FIXED_CONSTANT
        assert cfg.bucket_preset is BucketPreset.SPLIT

    @pytest.mark.parametrize("field,value", [
        ("fixed_max_entries", 0),
        ("fixed_max_intensity", -3),
        ("min_intensity", True),
        ("max_intensity", "3"),
    ])
    def test_rejects_non_positive_integers(self, field, value):
        with pytest.raises(ConfigError):
            ScoreConfig(**{field: value})

    def test_rejects_inverted_intensity_range(self):
        with pytest.raises(ConfigError):
            ScoreConfig(min_intensity=3, max_intensity=2)

    def test_rejects_family_strategy_with_fixed_ceiling(self):
        with pytest.raises(ConfigError) as exc_info:
            ScoreConfig(strategy=Strategy.FAMILY_WEIGHTED, ceiling_mode=CeilingMode.FIXED_CONSTANT)
        assert exc_info.value.details["ceiling_mode"] == "fixed_constant"

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ConfigError) as exc_info:
            ScoreConfig(strategy="vibes")
        assert "Strategy" in exc_info.value.message

    def test_with_overrides_ignores_none(self):
        cfg = ScoreConfig().with_overrides(strategy=None, fixed_max_entries=20)

        assert cfg.strategy is Strategy.FAMILY_WEIGHTED
        assert cfg.fixed_max_entries == 20

    def test_to_dict(self):
        assert PROFILES["otio-legacy"].to_dict() == {
            "strategy": "primary_intensity",
            "ceiling_mode": "fixed_constant",
            "fixed_max_entries": 10,
            "fixed_max_intensity": 3,
            "bucket_preset": "split",
            "min_intensity": 1,
            "max_intensity": 3,
        }


class TestProfiles:
    """Named profiles keep the historical pairings."""

    def test_primary_intensity_profile_uses_fixed_ceiling(self):
        cfg = get_profile("primary-intensity")

        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.ceiling_mode is CeilingMode.FIXED_CONSTANT

    def test_family_sounds_profile(self):
        cfg = get_profile("OTIO-FAMILY-SOUNDS")

        assert cfg.strategy is Strategy.FAMILY_WEIGHTED
        assert cfg.bucket_preset is BucketPreset.FAMILY

    def test_unknown_profile(self):
        with pytest.raises(ConfigError):
            get_profile("nope")


class TestParseEnum:

    def test_dash_and_case(self):
        assert parse_enum(CeilingMode, "actual-count") is CeilingMode.ACTUAL_COUNT

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_enum(CeilingMode, "sometimes")


class TestConfigFromEnv:
    """SCORE_* environment variables."""

    def test_empty_env_gives_default_profile(self):
        assert config_from_env({}) == PROFILES["family-weighted"]

    def test_profile_plus_overrides(self):
        cfg = config_from_env({
            "SCORE_PROFILE": "primary-intensity",
            "SCORE_FIXED_MAX_ENTRIES": "14",
            "SCORE_BUCKET_PRESET": "split",
        })

        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.fixed_max_entries == 14
        assert cfg.bucket_preset is BucketPreset.SPLIT

    def test_bad_values_fall_back_with_warning(self, caplog):
        caplog.set_level(logging.WARNING)
        cfg = config_from_env({
            "SCORE_STRATEGY": "vibes",
            "SCORE_FIXED_MAX_ENTRIES": "ten",
            "SCORE_PROFILE": "nope",
        })

        assert cfg == PROFILES["family-weighted"]
        assert "SCORE_STRATEGY" in caplog.text
        assert "SCORE_FIXED_MAX_ENTRIES" in caplog.text
        assert "SCORE_PROFILE" in caplog.text

    def test_invalid_combination_keeps_base(self, caplog):
        caplog.set_level(logging.WARNING)
        cfg = config_from_env({"SCORE_MIN_INTENSITY": "5"})

        assert cfg == PROFILES["family-weighted"]

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SCORE_STRATEGY", "primary_intensity")
        monkeypatch.setenv("SCORE_CEILING_MODE", "fixed_constant")

        cfg = config_from_env()
        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.ceiling_mode is CeilingMode.FIXED_CONSTANT


class TestLoadConfig:
    """YAML config files."""

    def test_load_flat_file(self, tmp_path):
        path = tmp_path / "score.yaml"
        path.write_text(
            "strategy: primary_intensity\n"
            "ceiling_mode: fixed_constant\n"
            "fixed_max_entries: 12\n"
            "bucket_preset: split\n",
            encoding="utf-8",
        )

        cfg = load_config(path)
        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.fixed_max_entries == 12
        assert cfg.bucket_preset is BucketPreset.SPLIT

    def test_load_profile_under_score_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("score:\n  profile: otio-family-sounds\n", encoding="utf-8")

        assert load_config(path) == PROFILES["otio-family-sounds"]

    def test_empty_file_gives_default(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == PROFILES["family-weighted"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("strategy: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)

    @pytest.mark.parametrize("data", [
        {"strategy": "vibes"},
        {"fixed_max_entries": 0},
        {"ceiling_mode": "sometimes"},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError) as exc_info:
            config_from_mapping(data)
        assert exc_info.value.details["errors"]

    def test_invalid_combination(self):
        with pytest.raises(ConfigError):
            config_from_mapping({"min_intensity": 4, "max_intensity": 2})

    def test_fixed_ceiling_on_family_profile_is_rejected(self):
        with pytest.raises(ConfigError):
            config_from_mapping({"ceiling_mode": "fixed_constant"})


class TestResolveConfig:
    """Profile < SCORE_* < file keys < explicit overrides."""

    def test_env_survives_a_config_file(self, tmp_path):
        path = tmp_path / "score.yaml"
        path.write_text("strategy: primary_intensity\n", encoding="utf-8")

        cfg = resolve_config(path, env={"SCORE_BUCKET_PRESET": "split"})

        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.bucket_preset is BucketPreset.SPLIT

    def test_file_keys_survive_an_explicit_profile(self, tmp_path):
        path = tmp_path / "score.yaml"
        path.write_text("fixed_max_entries: 2\n", encoding="utf-8")

        cfg = resolve_config(path, profile="primary-intensity", env={})

        assert cfg.strategy is Strategy.PRIMARY_INTENSITY
        assert cfg.fixed_max_entries == 2

    def test_file_beats_env_and_overrides_beat_file(self, tmp_path):
        path = tmp_path / "score.yaml"
        path.write_text("score:\n  profile: otio-legacy\n  fixed_max_entries: 12\n", encoding="utf-8")

        cfg = resolve_config(
            path,
            env={"SCORE_PROFILE": "family-weighted", "SCORE_FIXED_MAX_ENTRIES": "8", "SCORE_MAX_INTENSITY": "4"},
            fixed_max_intensity=5,
        )

        assert cfg.bucket_preset is BucketPreset.SPLIT
        assert cfg.fixed_max_entries == 12
        assert cfg.max_intensity == 4
        assert cfg.fixed_max_intensity == 5

    def test_layers_are_validated_together(self, tmp_path):
        path = tmp_path / "score.yaml"
        path.write_text("strategy: primary_intensity\n", encoding="utf-8")

        cfg = resolve_config(path, env={"SCORE_CEILING_MODE": "fixed_constant"})
        assert cfg.ceiling_mode is CeilingMode.FIXED_CONSTANT

    def test_env_profile_is_the_last_resort(self):
        cfg = resolve_config(env={"SCORE_PROFILE": "otio-family-sounds"})
        assert cfg == PROFILES["otio-family-sounds"]

    def test_invalid_result_raises(self):
        with pytest.raises(ConfigError):
            resolve_config(env={"SCORE_CEILING_MODE": "fixed_constant"})
