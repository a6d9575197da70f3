"""Default configuration values."""

from typing import Any, Dict

from ..core.constants import CLASS_NAMES

DEFAULT_CONFIG: Dict[str, Any] = {
    # Model settings
    "model_path": "data/models/odometer_best.pt",
    "model_input_size": 640,  # used when the model does not report its input size
    "device": "cpu",
    "class_names": list(CLASS_NAMES),

    # Detection settings
    "confidence_threshold": 0.3,
    "iou_threshold": 0.5,

    # Center-crop pass settings
    "crop_margin_px": 60,
    "crop_min_aspect": 0.6,
    "crop_max_aspect": 1.7,

    # Image decoding
    "max_decode_dim": 1600,

    # Reading quality checks
    "very_low_confidence": 0.3,
    "low_confidence": 0.5,
    "min_digits": 4,
    "max_digits": 7,

    # In-memory reading history
    "history_size": 5,

    # Memory guard
    "memory_guard_enabled": True,
    "memory_reserve_mb": 64,

    # Logging settings
    "log_level": "INFO",
    "log_dir": "logs",
    "enable_file_logging": False,
    "structured_logging": False,
}
