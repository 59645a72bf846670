from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BufferingPolicy(str, Enum):
    ROLLING = "rolling"
    # Deprecated: single latest reading, no temporal features
    LATEST_SAMPLE = "latest_sample"


class RuntimeConfig(BaseModel):
    window_size: int = Field(100, description="Samples per feature window", ge=1)
    sampling_interval_sec: float = Field(
        0.05, description="Cadence at which latest sensor readings are sampled", gt=0
    )
    tick_period_sec: float = Field(1.0, description="Cadence for predictions", gt=0)
    buffering_policy: BufferingPolicy = BufferingPolicy.ROLLING
    degraded_mode: bool = Field(
        False, description="Report the last known label as degraded when a cycle fails"
    )
    stop_timeout_sec: float = 5.0


class AssetConfig(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_path: Path = Path("assets/ml_model/run_walk_model.tflite")
    scaler_path: Path = Path("assets/ml_model/scaler_params.json")


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = "INFO"
    RUNWALK_MODEL_PATH: Optional[str] = None
    RUNWALK_SCALER_PATH: Optional[str] = None


class AppConfig(BaseModel):
    env: EnvSettings = Field(default_factory=EnvSettings)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    assets: AssetConfig = Field(default_factory=AssetConfig)

    @field_validator("env", mode="before")
    @classmethod
    def _coerce_env(cls, v):  # type: ignore[no-untyped-def]
        if isinstance(v, dict):
            return EnvSettings(**v)
        return v

    @staticmethod
    def load(config_path: Optional[Path] = None) -> "AppConfig":
        env = EnvSettings()  # loads from environment and .env

        raw: dict = {}
        if config_path is None:
            default_path = Path("config.yaml")
            config_path = default_path if default_path.exists() else None
        elif not Path(config_path).exists():
            raise ValueError(f"config file not found: {config_path}")

        if config_path is not None:
            with open(config_path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            if not isinstance(raw, dict):
                raise ValueError(f"Invalid {config_path}: expected a mapping")
        try:
            runtime = RuntimeConfig(**(raw.get("runtime") or {}))
            assets = AssetConfig(**(raw.get("assets") or {}))
        except ValidationError as ve:
            raise ValueError(f"Invalid {config_path}: {ve}")

        # Environment wins over the YAML file for asset locations
        if env.RUNWALK_MODEL_PATH:
            assets.model_path = Path(env.RUNWALK_MODEL_PATH)
        if env.RUNWALK_SCALER_PATH:
            assets.scaler_path = Path(env.RUNWALK_SCALER_PATH)
        return AppConfig(env=env, runtime=runtime, assets=assets)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load merged configuration from environment and optional YAML."""

    return AppConfig.load(config_path)
