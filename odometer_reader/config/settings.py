"""Configuration dataclass and loading utilities.

Provides a strongly-typed configuration object that can be injected into
services instead of relying on a global module-level dictionary.

Precedence (highest first): ``ODOMETER_*`` environment variables, ``.env``
file, ``config.json``, built-in defaults.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import json, os, logging
from .defaults import DEFAULT_CONFIG
from .env_config import load_environment_config

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

@dataclass(slots=True)
class Config:
    # Model settings
    model_path: str = DEFAULT_CONFIG["model_path"]
    model_input_size: int = DEFAULT_CONFIG["model_input_size"]
    device: str = DEFAULT_CONFIG["device"]
    class_names: List[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["class_names"]))

    # Detection settings
    confidence_threshold: float = DEFAULT_CONFIG["confidence_threshold"]
    iou_threshold: float = DEFAULT_CONFIG["iou_threshold"]

    # Center-crop pass settings
    crop_margin_px: int = DEFAULT_CONFIG["crop_margin_px"]
    crop_min_aspect: float = DEFAULT_CONFIG["crop_min_aspect"]
    crop_max_aspect: float = DEFAULT_CONFIG["crop_max_aspect"]

    # Image decoding
    max_decode_dim: int = DEFAULT_CONFIG["max_decode_dim"]

    # Reading quality checks
    very_low_confidence: float = DEFAULT_CONFIG["very_low_confidence"]
    low_confidence: float = DEFAULT_CONFIG["low_confidence"]
    min_digits: int = DEFAULT_CONFIG["min_digits"]
    max_digits: int = DEFAULT_CONFIG["max_digits"]

    # In-memory history
    history_size: int = DEFAULT_CONFIG["history_size"]

    # Memory guard
    memory_guard_enabled: bool = DEFAULT_CONFIG["memory_guard_enabled"]
    memory_reserve_mb: int = DEFAULT_CONFIG["memory_reserve_mb"]

    # Logging
    log_level: str = DEFAULT_CONFIG["log_level"]
    log_dir: str = DEFAULT_CONFIG["log_dir"]
    enable_file_logging: bool = DEFAULT_CONFIG["enable_file_logging"]
    structured_logging: bool = DEFAULT_CONFIG["structured_logging"]

    # Arbitrary extra values retained for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        extra = d.pop("extra", {})
        d.update(extra)
        return d

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.__slots__ and key != "extra":
            return getattr(self, key)
        return self.extra.get(key, default)


def load_config(path: str = "config.json", env_file: Optional[str] = None) -> Config:
    """Load configuration from a JSON file, then apply environment overrides.

    Args:
        path: Path to config.json file
        env_file: Path to .env file (optional)

    Returns:
        Config: Loaded and validated configuration. A missing or unreadable
        file falls back to defaults rather than failing.
    """
    data: Dict[str, Any] = {}

    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded_data = json.load(f)
            if loaded_data is None:
                logger.warning(f"Configuration file '{path}' is empty, using defaults")
            elif not isinstance(loaded_data, dict):
                logger.error(f"Configuration file '{path}' does not contain a JSON object, using defaults")
            else:
                data = loaded_data
                logger.info(f"Loaded configuration from '{path}'")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON configuration file '{path}': {e}. Using defaults.")
        except OSError as e:
            logger.error(f"Could not read configuration file '{path}': {e}. Using defaults.")
    else:
        logger.debug(f"Configuration file '{path}' does not exist. Using defaults.")

    merged = {**DEFAULT_CONFIG, **data}

    env_config = load_environment_config(DEFAULT_CONFIG, env_file)
    merged.update(env_config.overrides)

    _validate_values(merged)

    extra = {k: v for k, v in merged.items() if k not in DEFAULT_CONFIG}
    if extra:
        logger.info(f"Found extra configuration keys: {list(extra.keys())}")

    return Config(**{k: merged[k] for k in DEFAULT_CONFIG}, extra=extra)


def _reset(config_dict: Dict[str, Any], key: str, reason: str) -> None:
    logger.warning(f"Invalid value for '{key}' ({config_dict[key]!r}): {reason}. Using default.")
    config_dict[key] = DEFAULT_CONFIG[key]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_values(config_dict: Dict[str, Any]) -> None:
    """Replace out-of-range values with their defaults, in place."""
    for key in ("confidence_threshold", "iou_threshold", "very_low_confidence", "low_confidence"):
        value = config_dict[key]
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            _reset(config_dict, key, "must be a number in [0, 1]")

    for key in ("model_input_size", "max_decode_dim", "history_size", "min_digits", "max_digits"):
        value = config_dict[key]
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            _reset(config_dict, key, "must be a positive integer")

    for key in ("crop_margin_px", "memory_reserve_mb"):
        value = config_dict[key]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            _reset(config_dict, key, "must be a non-negative integer")

    for key in ("crop_min_aspect", "crop_max_aspect"):
        value = config_dict[key]
        if not _is_number(value) or value <= 0:
            _reset(config_dict, key, "must be a positive number")
    if config_dict["crop_min_aspect"] >= config_dict["crop_max_aspect"]:
        _reset(config_dict, "crop_min_aspect", "must be below crop_max_aspect")
        config_dict["crop_max_aspect"] = DEFAULT_CONFIG["crop_max_aspect"]

    if config_dict["min_digits"] > config_dict["max_digits"]:
        _reset(config_dict, "min_digits", "must not exceed max_digits")
        config_dict["max_digits"] = DEFAULT_CONFIG["max_digits"]

    names = config_dict["class_names"]
    if (not isinstance(names, list) or not names
            or not all(isinstance(n, str) and n for n in names)
            or len(set(names)) != len(names)):
        _reset(config_dict, "class_names", "must be a non-empty list of unique labels")
    config_dict["class_names"] = list(config_dict["class_names"])

    for key in ("model_path", "device", "log_dir"):
        value = config_dict[key]
        if not isinstance(value, str) or not value.strip():
            _reset(config_dict, key, "must be a non-empty string")

    level = config_dict["log_level"]
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        _reset(config_dict, "log_level", f"must be one of {_LOG_LEVELS}")
    else:
        config_dict["log_level"] = level.upper()

    for key in ("memory_guard_enabled", "enable_file_logging", "structured_logging"):
        if not isinstance(config_dict[key], bool):
            _reset(config_dict, key, "must be a boolean")
