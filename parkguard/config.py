"""YAML configuration loader with dataclass mapping."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class RuleConfig:
    buffer_zone_distance_m: float = 100.0
    shore_proximity_warning_m: float = 100.0
    speed_limit_in_park: float = 5.0          # knots
    anchoring_speed_threshold: float = 0.5    # knots
    vegetation_proximity_warning_m: float = 50.0


@dataclass
class BatchConfig:
    chunk_size: int = 25
    yield_seconds: float = 0.0


@dataclass
class GeometryConfig:
    respect_holes: bool = False


@dataclass
class ExemptionConfig:
    max_age_seconds: float = 300.0


@dataclass
class LoggingConfig:
    log_dir: Optional[str] = None   # console only when unset
    verbose: bool = False


@dataclass
class AppConfig:
    rules: RuleConfig = field(default_factory=RuleConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    exemptions: ExemptionConfig = field(default_factory=ExemptionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Raise ValueError for settings the engine cannot run with."""
        if self.batch.chunk_size < 1:
            raise ValueError(f"batch.chunk_size must be >= 1, got {self.batch.chunk_size}")
        if self.batch.yield_seconds < 0:
            raise ValueError("batch.yield_seconds must not be negative")
        for name in ("buffer_zone_distance_m", "shore_proximity_warning_m",
                     "speed_limit_in_park", "anchoring_speed_threshold",
                     "vegetation_proximity_warning_m"):
            if getattr(self.rules, name) < 0:
                raise ValueError(f"rules.{name} must not be negative")
        if self.exemptions.max_age_seconds <= 0:
            raise ValueError("exemptions.max_age_seconds must be positive")


def _apply_dict(dc: object, data: dict) -> None:
    """Apply dictionary values onto a dataclass instance, ignoring unknown keys."""
    for key, value in data.items():
        if hasattr(dc, key):
            setattr(dc, key, value)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a YAML file, falling back to defaults."""
    config = AppConfig()

    if path is None:
        path = os.environ.get("CONFIG_PATH", "config/default.yaml")

    path = Path(path)
    if path.exists():
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        section_map = {
            "rules": config.rules,
            "batch": config.batch,
            "geometry": config.geometry,
            "exemptions": config.exemptions,
            "logging": config.logging,
        }

        for section_name, dc_instance in section_map.items():
            if section_name in raw and isinstance(raw[section_name], dict):
                _apply_dict(dc_instance, raw[section_name])

    # Environment variable overrides
    env_speed = os.environ.get("PARKGUARD_SPEED_LIMIT")
    if env_speed:
        config.rules.speed_limit_in_park = float(env_speed)

    env_buffer = os.environ.get("PARKGUARD_BUFFER_DISTANCE")
    if env_buffer:
        config.rules.buffer_zone_distance_m = float(env_buffer)

    env_chunk = os.environ.get("PARKGUARD_CHUNK_SIZE")
    if env_chunk:
        config.batch.chunk_size = int(env_chunk)

    config.validate()
    return config
