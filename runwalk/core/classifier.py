from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Union

import numpy as np
import onnxruntime as ort

from .errors import AssetLoadError, DimensionMismatchError, InvalidScoreError, NotInitializedError
from .events import ActivityLabel, Classification
from .normalizer import Normalizer

logger = logging.getLogger(__name__)


RUNNING_THRESHOLD = 0.5


class ScoringModel(Protocol):
    def run(self, batch: np.ndarray) -> np.ndarray:
        ...


class OnnxModel:
    """Binary run/walk model exported to ONNX: [1, n] features -> [1, 1] probability."""

    def __init__(self, session: ort.InferenceSession) -> None:
        self.session = session
        model_input = session.get_inputs()[0]
        self.input_name = model_input.name
        self.input_dtype = np.float64 if model_input.type == "tensor(double)" else np.float32

    @classmethod
    def load(cls, path: Union[str, Path]) -> "OnnxModel":
        path = Path(path)
        if not path.exists():
            raise AssetLoadError(f"model file not found: {path}")
        try:
            session = ort.InferenceSession(str(path), providers=["CPUExecutionProvider"])
        except Exception as exc:  # noqa: BLE001
            raise AssetLoadError(f"cannot load model {path}: {exc}") from exc
        logger.info("model loaded", extra={"path": str(path)})
        return cls(session)

    def run(self, batch: np.ndarray) -> np.ndarray:
        outputs = self.session.run(None, {self.input_name: batch.astype(self.input_dtype)})
        return np.asarray(outputs[0])


class TfliteModel:
    """The run/walk model as shipped with the mobile app, run by the TensorFlow Lite interpreter."""

    def __init__(self, interpreter: Any) -> None:
        self.interpreter = interpreter
        self.interpreter.allocate_tensors()
        input_details = interpreter.get_input_details()[0]
        self.input_index = input_details["index"]
        self.input_dtype = input_details["dtype"]
        self.output_index = interpreter.get_output_details()[0]["index"]

    @classmethod
    def load(cls, path: Union[str, Path]) -> "TfliteModel":
        path = Path(path)
        if not path.exists():
            raise AssetLoadError(f"model file not found: {path}")
        try:
            import tensorflow as tf
        except ModuleNotFoundError as exc:
            raise AssetLoadError(
                f"cannot load model {path}: TensorFlow is not installed (pip install 'runwalk[tflite]')"
            ) from exc
        try:
            model = cls(tf.lite.Interpreter(model_path=str(path)))
        except Exception as exc:  # noqa: BLE001
            raise AssetLoadError(f"cannot load model {path}: {exc}") from exc
        logger.info("model loaded", extra={"path": str(path)})
        return model

    def run(self, batch: np.ndarray) -> np.ndarray:
        self.interpreter.set_tensor(self.input_index, batch.astype(self.input_dtype))
        self.interpreter.invoke()
        return np.asarray(self.interpreter.get_tensor(self.output_index))


MODEL_LOADERS: Dict[str, Callable[[Union[str, Path]], ScoringModel]] = {
    ".tflite": TfliteModel.load,
    ".onnx": OnnxModel.load,
}


def load_model(path: Union[str, Path]) -> ScoringModel:
    """Load a scoring model, picking the runtime from the file suffix."""
    path = Path(path)
    loader = MODEL_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise AssetLoadError(f"unsupported model format {path.suffix!r}; expected one of {sorted(MODEL_LOADERS)}")
    return loader(path)


def label_for_score(score: float) -> ActivityLabel:
    # Strictly greater: a score of exactly 0.5 is walking
    return ActivityLabel.RUNNING if score > RUNNING_THRESHOLD else ActivityLabel.WALKING


def classify_score(score: float) -> Classification:
    label = label_for_score(score)
    confidence = score if label is ActivityLabel.RUNNING else 1.0 - score
    return Classification(label=label, score=score, confidence=confidence)


class ClassifierAdapter:
    """Wraps the opaque binary model together with its scaler.

    Both must be present before `score` or `predict` is called; the adapter
    never substitutes a default label when they are not.
    """

    def __init__(self, model: Optional[ScoringModel] = None, normalizer: Optional[Normalizer] = None) -> None:
        self._model = model
        self._normalizer = normalizer

    def initialize(self, model_path: Union[str, Path], scaler_path: Union[str, Path]) -> None:
        """Load model and scaler; failures propagate as AssetLoadError."""
        if self.is_initialized:
            return
        model = load_model(model_path)
        normalizer = Normalizer.from_file(scaler_path)
        self._model = model
        self._normalizer = normalizer

    @property
    def is_initialized(self) -> bool:
        return self._model is not None and self._normalizer is not None

    @property
    def normalizer(self) -> Normalizer:
        if self._normalizer is None:
            raise NotInitializedError("classifier scaler is not loaded")
        return self._normalizer

    def score(self, normalized: Sequence[float]) -> float:
        if not self.is_initialized:
            raise NotInitializedError("classifier used before initialize()")
        expected = self._normalizer.size  # type: ignore[union-attr]
        if len(normalized) != expected:
            raise DimensionMismatchError(f"model expects {expected} features, got {len(normalized)}")
        batch = np.asarray([list(normalized)], dtype=np.float64)
        output = np.asarray(self._model.run(batch))  # type: ignore[union-attr]
        if output.size != 1:
            raise InvalidScoreError(f"model returned shape {output.shape}, expected a single value")
        value = float(output.reshape(-1)[0])
        if not math.isfinite(value) or value < 0.0 or value > 1.0:
            raise InvalidScoreError(f"model returned {value!r}, expected a probability in [0, 1]")
        return value

    def predict(self, raw_features: Sequence[float]) -> Classification:
        """Normalize raw features, score them and apply the decision threshold."""
        if not self.is_initialized:
            raise NotInitializedError("classifier used before initialize()")
        normalized = self.normalizer.transform(raw_features)
        result = classify_score(self.score(normalized))
        logger.debug(
            "predicted activity",
            extra={"label": result.label.value, "score": result.score},
        )
        return result

    def close(self) -> None:
        self._model = None
        self._normalizer = None
