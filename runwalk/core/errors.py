from __future__ import annotations


class PipelineError(Exception):
    """Base class for activity-classification pipeline failures."""


class InsufficientDataError(PipelineError):
    """Feature extraction was asked to summarize an empty window."""


class InvalidSampleError(PipelineError):
    """A window contains a non-finite sensor reading."""


class DimensionMismatchError(PipelineError):
    """Feature vector length does not match the scaler parameters."""


class InvalidScaleError(PipelineError):
    """A scaler entry is zero or non-finite."""


class NotLoadedError(PipelineError):
    """Scaler parameters are missing."""


class NotInitializedError(PipelineError):
    """The classifier was invoked before its model and scaler were loaded."""


class InvalidScoreError(PipelineError):
    """The model returned something other than a probability in [0, 1]."""


class AssetLoadError(PipelineError):
    """A model, scaler or recording file is missing or corrupt."""
