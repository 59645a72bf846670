from __future__ import annotations

import sys
from typing import Dict, List

import numpy as np
import pytest
from onnx import TensorProto

from fakes import write_onnx_model, write_scaler
from runwalk.core.classifier import ClassifierAdapter, OnnxModel, TfliteModel, load_model
from runwalk.core.errors import AssetLoadError
from runwalk.core.events import ActivityLabel
from runwalk.core.features import FEATURE_COUNT, FEATURE_NAMES
from runwalk.core.normalizer import Normalizer, ScalerParams

MAG_STD = FEATURE_NAMES.index("accel_mag_std")


def mag_std_weights() -> List[float]:
    weights = [0.0] * FEATURE_COUNT
    weights[MAG_STD] = 10.0
    return weights


def features_with(value: float) -> List[float]:
    features = [0.0] * FEATURE_COUNT
    features[MAG_STD] = value
    return features


@pytest.mark.parametrize(
    "elem_type,dtype",
    [(TensorProto.FLOAT, np.float32), (TensorProto.DOUBLE, np.float64)],
)
def test_onnx_model_initialize_and_predict(tmp_path, elem_type: int, dtype: type) -> None:
    model_path = write_onnx_model(tmp_path / "run_walk_model.onnx", mag_std_weights(), elem_type)
    scaler_path = write_scaler(tmp_path / "scaler_params.json", [0.0] * FEATURE_COUNT, [1.0] * FEATURE_COUNT)

    adapter = ClassifierAdapter()
    adapter.initialize(model_path, scaler_path)
    assert adapter.is_initialized
    model = adapter._model  # noqa: SLF001
    assert isinstance(model, OnnxModel)
    assert model.input_name == "features"
    assert model.input_dtype is dtype

    running = adapter.predict(features_with(1.0))
    assert running.label is ActivityLabel.RUNNING
    assert running.score == pytest.approx(1.0 / (1.0 + np.exp(-10.0)), rel=1e-5)
    walking = adapter.predict(features_with(-1.0))
    assert walking.label is ActivityLabel.WALKING
    assert walking.confidence == pytest.approx(running.score, rel=1e-5)


def test_onnx_model_output_is_one_by_one(tmp_path) -> None:
    model = OnnxModel.load(write_onnx_model(tmp_path / "m.onnx", [0.0] * FEATURE_COUNT))
    out = model.run(np.zeros((1, FEATURE_COUNT)))
    assert out.shape == (1, 1)
    assert float(out[0, 0]) == pytest.approx(0.5)


def test_corrupt_onnx_file(tmp_path) -> None:
    path = tmp_path / "m.onnx"
    path.write_bytes(b"not a model")
    with pytest.raises(AssetLoadError):
        OnnxModel.load(path)


class StubInterpreter:
    """Interpreter surface used by TfliteModel: fixed output, records inputs."""

    def __init__(self, score: float) -> None:
        self.score = score
        self.allocated = False
        self.inputs: Dict[int, np.ndarray] = {}
        self.invocations = 0

    def allocate_tensors(self) -> None:
        self.allocated = True

    def get_input_details(self) -> List[dict]:
        return [{"index": 0, "dtype": np.float32, "shape": np.array([1, FEATURE_COUNT])}]

    def get_output_details(self) -> List[dict]:
        return [{"index": 7}]

    def set_tensor(self, index: int, value: np.ndarray) -> None:
        self.inputs[index] = value

    def invoke(self) -> None:
        self.invocations += 1

    def get_tensor(self, index: int) -> np.ndarray:
        assert index == 7
        return np.array([[self.score]], dtype=np.float32)


def test_tflite_model_scores_through_interpreter() -> None:
    interpreter = StubInterpreter(0.8)
    model = TfliteModel(interpreter)
    assert interpreter.allocated
    params = ScalerParams(mean=[0.0] * FEATURE_COUNT, scale=[1.0] * FEATURE_COUNT)
    adapter = ClassifierAdapter(model=model, normalizer=Normalizer(params))
    result = adapter.predict([2.0] * FEATURE_COUNT)
    assert result.label is ActivityLabel.RUNNING
    assert result.score == pytest.approx(0.8, rel=1e-6)
    assert interpreter.invocations == 1
    assert interpreter.inputs[0].dtype == np.float32
    assert interpreter.inputs[0].shape == (1, FEATURE_COUNT)


def test_tflite_without_tensorflow(tmp_path, monkeypatch) -> None:
    path = tmp_path / "run_walk_model.tflite"
    path.write_bytes(b"\x00")
    monkeypatch.setitem(sys.modules, "tensorflow", None)
    with pytest.raises(AssetLoadError, match="TensorFlow"):
        load_model(path)


def test_missing_tflite_file(tmp_path) -> None:
    with pytest.raises(AssetLoadError, match="not found"):
        load_model(tmp_path / "run_walk_model.tflite")


def test_unsupported_model_suffix(tmp_path) -> None:
    path = tmp_path / "model.pt"
    path.write_bytes(b"\x00")
    with pytest.raises(AssetLoadError, match="unsupported model format"):
        load_model(path)
