"""
Odometer photo reader: digit detection and dual-pass reconciliation.
"""

from .core.constants import VERSION as __version__

from .config.settings import Config, load_config
from .core.entities import BoxDetection, PredictionSummary, PipelineResult
from .services.pipeline import OdometerPipeline
from .services.detector import Detector

__all__ = [
    "Config", "load_config",
    "BoxDetection", "PredictionSummary", "PipelineResult",
    "OdometerPipeline", "Detector",
]
