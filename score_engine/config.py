# -*- coding: utf-8 -*-
"""
config.py
---------

Scoring configuration: strategy, ceiling mode and bucket preset.

Sources
- ScoreConfig(...) directly, or a named profile (PROFILES)
- environment variables (config_from_env)
- a YAML file (load_config), validated with pydantic

Environment variables
- SCORE_PROFILE              family-weighted / primary-intensity / otio-legacy / otio-family-sounds
- SCORE_STRATEGY             family_weighted / primary_intensity
- SCORE_CEILING_MODE         actual_count / fixed_constant
- SCORE_FIXED_MAX_ENTRIES    default 10
- SCORE_FIXED_MAX_INTENSITY  default 3
- SCORE_BUCKET_PRESET        tiered / split / family
- SCORE_MIN_INTENSITY        default 1
- SCORE_MAX_INTENSITY        default 3

Unparsable env values fall back to the default with a warning; an invalid
config file raises ConfigError.

Layering (resolve_config): profile, then SCORE_* overrides, then the
file's explicit keys, then caller overrides. The profile is the first of
the caller's, the file's `profile:` key and SCORE_PROFILE.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .buckets import BucketPreset
from .errors import ConfigError

logger = logging.getLogger("score_engine.config")

E = TypeVar("E", bound=Enum)


class Strategy(str, Enum):
    FAMILY_WEIGHTED = "family_weighted"      # A: family weight, intensity ignored
    PRIMARY_INTENSITY = "primary_intensity"  # B: base weight * intensity


class CeilingMode(str, Enum):
    ACTUAL_COUNT = "actual_count"
    FIXED_CONSTANT = "fixed_constant"


def parse_enum(enum_cls: Type[E], value: Union[str, E]) -> E:
    """Accept an enum member, its value or its name (any case, '-' or '_')."""
    if isinstance(value, enum_cls):
        return value
    s = str(value).strip()
    try:
        return enum_cls(s.lower().replace("-", "_"))
    except ValueError:
        pass
    key = s.upper().replace("-", "_")
    if key in enum_cls.__members__:
        return enum_cls.__members__[key]
    choices = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"invalid {enum_cls.__name__}: {value!r} (expected one of: {choices})")


# historical constants of the puls/otio weekly score
DEFAULT_FIXED_MAX_ENTRIES = 10
DEFAULT_FIXED_MAX_INTENSITY = 3


@dataclass(frozen=True)
class ScoreConfig:
    strategy: Strategy = Strategy.FAMILY_WEIGHTED
    ceiling_mode: CeilingMode = CeilingMode.ACTUAL_COUNT
    fixed_max_entries: int = DEFAULT_FIXED_MAX_ENTRIES
    fixed_max_intensity: int = DEFAULT_FIXED_MAX_INTENSITY
    bucket_preset: BucketPreset = BucketPreset.TIERED
    min_intensity: int = 1
    max_intensity: int = 3

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "strategy", parse_enum(Strategy, self.strategy))
            object.__setattr__(self, "ceiling_mode", parse_enum(CeilingMode, self.ceiling_mode))
            object.__setattr__(self, "bucket_preset", parse_enum(BucketPreset, self.bucket_preset))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        for name in ("fixed_max_entries", "fixed_max_intensity", "min_intensity", "max_intensity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer", details={name: value})
        if self.min_intensity > self.max_intensity:
            raise ConfigError(
                "min_intensity must not exceed max_intensity",
                details={"min_intensity": self.min_intensity, "max_intensity": self.max_intensity},
            )
        # family scores are bounded by the week's own entry count only
        if self.strategy is Strategy.FAMILY_WEIGHTED and self.ceiling_mode is CeilingMode.FIXED_CONSTANT:
            raise ConfigError(
                "family_weighted scoring requires the actual_count ceiling",
                details={"strategy": self.strategy.value, "ceiling_mode": self.ceiling_mode.value},
            )

    def with_overrides(self, **changes: Any) -> "ScoreConfig":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "ceiling_mode": self.ceiling_mode.value,
            "fixed_max_entries": self.fixed_max_entries,
            "fixed_max_intensity": self.fixed_max_intensity,
            "bucket_preset": self.bucket_preset.value,
            "min_intensity": self.min_intensity,
            "max_intensity": self.max_intensity,
        }


PROFILES: Dict[str, ScoreConfig] = {
    # otio wheel of 9 families, max score from the week's own entry count
    "family-weighted": ScoreConfig(
        strategy=Strategy.FAMILY_WEIGHTED,
        ceiling_mode=CeilingMode.ACTUAL_COUNT,
        bucket_preset=BucketPreset.TIERED,
    ),
    # puls / Vibes: 5 labels x intensity against the fixed 10 x 3 ceiling
    "primary-intensity": ScoreConfig(
        strategy=Strategy.PRIMARY_INTENSITY,
        ceiling_mode=CeilingMode.FIXED_CONSTANT,
        bucket_preset=BucketPreset.TIERED,
    ),
    "otio-legacy": ScoreConfig(
        strategy=Strategy.PRIMARY_INTENSITY,
        ceiling_mode=CeilingMode.FIXED_CONSTANT,
        bucket_preset=BucketPreset.SPLIT,
    ),
    "otio-family-sounds": ScoreConfig(
        strategy=Strategy.FAMILY_WEIGHTED,
        ceiling_mode=CeilingMode.ACTUAL_COUNT,
        bucket_preset=BucketPreset.FAMILY,
    ),
}

DEFAULT_PROFILE = "family-weighted"


def get_profile(name: str) -> ScoreConfig:
    key = (name or "").strip().lower()
    if key not in PROFILES:
        raise ConfigError(f"unknown profile: {name!r}", details={"profiles": sorted(PROFILES)})
    return PROFILES[key]


# ----------------------------
# environment
# ----------------------------

def _env_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return None


def _env_enum(env: Mapping[str, str], name: str, enum_cls: Type[E]) -> Optional[E]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        return parse_enum(enum_cls, raw)
    except ValueError as exc:
        logger.warning("ignoring %s: %s", name, exc)
        return None


def env_settings(env: Optional[Mapping[str, str]] = None) -> Tuple[Optional[str], Dict[str, Any]]:
    """(profile name, overrides) from SCORE_*; unusable values are dropped with a warning."""
    env = os.environ if env is None else env

    profile_name = (env.get("SCORE_PROFILE") or "").strip() or None
    if profile_name and profile_name.lower() not in PROFILES:
        logger.warning("ignoring SCORE_PROFILE: unknown profile %r", profile_name)
        profile_name = None

    overrides = dict(
        strategy=_env_enum(env, "SCORE_STRATEGY", Strategy),
        ceiling_mode=_env_enum(env, "SCORE_CEILING_MODE", CeilingMode),
        bucket_preset=_env_enum(env, "SCORE_BUCKET_PRESET", BucketPreset),
        fixed_max_entries=_env_int(env, "SCORE_FIXED_MAX_ENTRIES"),
        fixed_max_intensity=_env_int(env, "SCORE_FIXED_MAX_INTENSITY"),
        min_intensity=_env_int(env, "SCORE_MIN_INTENSITY"),
        max_intensity=_env_int(env, "SCORE_MAX_INTENSITY"),
    )
    return profile_name, {k: v for k, v in overrides.items() if v is not None}


def config_from_env(env: Optional[Mapping[str, str]] = None) -> ScoreConfig:
    profile_name, overrides = env_settings(env)
    base = get_profile(profile_name or DEFAULT_PROFILE)
    try:
        return base.with_overrides(**overrides)
    except ConfigError as exc:
        logger.warning("ignoring SCORE_* overrides: %s", exc.message)
        return base


# ----------------------------
# YAML file
# ----------------------------

class ScoreConfigFile(BaseModel):
    profile: Optional[str] = Field(default=None, description="named base profile")
    strategy: Optional[Strategy] = None
    ceiling_mode: Optional[CeilingMode] = None
    bucket_preset: Optional[BucketPreset] = None
    fixed_max_entries: Optional[int] = Field(default=None, ge=1)
    fixed_max_intensity: Optional[int] = Field(default=None, ge=1)
    min_intensity: Optional[int] = Field(default=None, ge=1)
    max_intensity: Optional[int] = Field(default=None, ge=1)

    @field_validator("strategy", mode="before")
    @classmethod
    def _strategy(cls, v):
        return None if v is None else parse_enum(Strategy, v)

    @field_validator("ceiling_mode", mode="before")
    @classmethod
    def _ceiling_mode(cls, v):
        return None if v is None else parse_enum(CeilingMode, v)

    @field_validator("bucket_preset", mode="before")
    @classmethod
    def _bucket_preset(cls, v):
        return None if v is None else parse_enum(BucketPreset, v)


def file_settings(data: Mapping[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """(profile name, explicit keys) of a config mapping; raises ConfigError."""
    try:
        parsed = ScoreConfigFile(**dict(data))
    except ValidationError as exc:
        raise ConfigError("invalid score config", details={"errors": exc.errors()}) from exc
    if parsed.profile:
        get_profile(parsed.profile)
    overrides = parsed.model_dump(exclude_none=True)
    overrides.pop("profile", None)
    return parsed.profile, overrides


def config_from_mapping(data: Mapping[str, Any]) -> ScoreConfig:
    profile_name, overrides = file_settings(data)
    return get_profile(profile_name or DEFAULT_PROFILE).with_overrides(**overrides)


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """The settings mapping of a YAML file (top level or its `score:` section)."""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {p}")
    section = data.get("score", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'score' section must be a mapping: {p}")
    return section


def load_config(path: Union[str, Path]) -> ScoreConfig:
    return config_from_mapping(read_config_file(path))


def resolve_config(
    path: Optional[Union[str, Path]] = None,
    profile: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ScoreConfig:
    """Layer profile < SCORE_* < config file keys < `overrides` into one ScoreConfig.

    The layers are merged before validation, so an intermediate mix (say a
    fixed ceiling from the env with the file switching to the primary
    strategy) is never checked on its own. Raises ConfigError.
    """
    env_profile, env_overrides = env_settings(env)
    file_profile, file_overrides = file_settings(read_config_file(path)) if path else (None, {})

    base = get_profile(profile or file_profile or env_profile or DEFAULT_PROFILE)
    merged: Dict[str, Any] = {}
    merged.update(env_overrides)
    merged.update(file_overrides)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return base.with_overrides(**merged)
