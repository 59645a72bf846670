from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .errors import AssetLoadError, DimensionMismatchError, InvalidScaleError, NotLoadedError
from .features import FEATURE_NAMES, FeatureVector

logger = logging.getLogger(__name__)


class ScalerParams(BaseModel):
    """Per-feature linear scaling fitted offline (StandardScaler layout)."""

    model_config = ConfigDict(frozen=True)

    mean: Tuple[float, ...]
    scale: Tuple[float, ...]
    feature_names: Optional[Tuple[str, ...]] = None
    n_features: Optional[int] = None

    @model_validator(mode="after")
    def _check_lengths(self) -> "ScalerParams":
        if len(self.mean) != len(self.scale):
            raise ValueError(f"mean has {len(self.mean)} entries but scale has {len(self.scale)}")
        if self.n_features is not None and self.n_features != len(self.mean):
            raise ValueError(f"n_features={self.n_features} but mean has {len(self.mean)} entries")
        if self.feature_names is not None and len(self.feature_names) != len(self.mean):
            raise ValueError(
                f"feature_names has {len(self.feature_names)} entries but mean has {len(self.mean)}"
            )
        return self

    @property
    def size(self) -> int:
        return len(self.mean)


def load_scaler_params(path: Union[str, Path]) -> ScalerParams:
    """Read scaler parameters from a JSON or YAML document."""
    path = Path(path)
    if not path.exists():
        raise AssetLoadError(f"scaler file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(fh)
            else:
                raw = json.load(fh)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise AssetLoadError(f"cannot read scaler file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise AssetLoadError(f"scaler file {path} must contain a mapping, got {type(raw).__name__}")
    try:
        return ScalerParams(**raw)
    except ValidationError as ve:
        raise AssetLoadError(f"invalid scaler file {path}: {ve}") from ve


def check_scale(params: ScalerParams) -> None:
    for i, s in enumerate(params.scale):
        if s == 0.0 or not math.isfinite(s):
            raise InvalidScaleError(f"scale[{i}] = {s!r} cannot be used as a divisor")


def normalize(raw: Sequence[float], params: Optional[ScalerParams]) -> FeatureVector:
    """Apply (raw[i] - mean[i]) / scale[i] elementwise."""
    if params is None:
        raise NotLoadedError("scaler parameters are not loaded")
    if len(raw) != params.size:
        raise DimensionMismatchError(f"feature vector has {len(raw)} values, scaler expects {params.size}")
    check_scale(params)
    return [(x - m) / s for x, m, s in zip(raw, params.mean, params.scale)]


class Normalizer:
    """Owns one immutable set of scaler parameters for the process lifetime."""

    def __init__(self, params: ScalerParams) -> None:
        check_scale(params)
        if params.feature_names is not None and params.size == len(FEATURE_NAMES):
            if tuple(params.feature_names) != FEATURE_NAMES:
                logger.warning(
                    "scaler feature names differ from extractor layout",
                    extra={"scaler_names": list(params.feature_names)},
                )
        self._params = params

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Normalizer":
        params = load_scaler_params(path)
        logger.info("scaler loaded", extra={"path": str(path), "n_features": params.size})
        return cls(params)

    @property
    def params(self) -> ScalerParams:
        return self._params

    @property
    def size(self) -> int:
        return self._params.size

    def transform(self, raw: Sequence[float]) -> FeatureVector:
        return normalize(raw, self._params)

    def inverse_transform(self, normalized: Sequence[float]) -> FeatureVector:
        if len(normalized) != self._params.size:
            raise DimensionMismatchError(
                f"feature vector has {len(normalized)} values, scaler expects {self._params.size}"
            )
        return [z * s + m for z, m, s in zip(normalized, self._params.mean, self._params.scale)]
