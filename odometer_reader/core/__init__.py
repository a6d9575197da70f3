"""Core domain entities and constants."""

from .entities import (
    BoxDetection, PredictionSummary, FrameGeometry, PipelineResult,
    PassOutcome, PassStatus, Box,
)
from .exceptions import (
    ApplicationError, ConfigError, DetectionError, ModelUnavailableError,
    InvalidInputError, GeometryError, PassError, PassMemoryExhausted,
    PassUnexpectedFailure, ModelError, ModelLoadError, InferenceError,
)
from .constants import APP_NAME, VERSION, CLASS_NAMES, DETECTION_ORIGINAL, DETECTION_CROPPED

__all__ = [
    "BoxDetection", "PredictionSummary", "FrameGeometry", "PipelineResult",
    "PassOutcome", "PassStatus", "Box",
    "ApplicationError", "ConfigError", "DetectionError", "ModelUnavailableError",
    "InvalidInputError", "GeometryError", "PassError", "PassMemoryExhausted",
    "PassUnexpectedFailure", "ModelError", "ModelLoadError", "InferenceError",
    "APP_NAME", "VERSION", "CLASS_NAMES", "DETECTION_ORIGINAL", "DETECTION_CROPPED",
]
