"""Environment variable overrides for the odometer reader configuration.

Variables are named ``ODOMETER_<KEY>`` after the configuration key they
override (``ODOMETER_MODEL_PATH``, ``ODOMETER_CONFIDENCE_THRESHOLD`` ...). They
may also be supplied through a ``.env`` file; real environment variables take
precedence over the file.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "ODOMETER_"


class EnvironmentConfigError(ConfigError):
    """Raised when an environment override cannot be parsed."""
    pass


@dataclass(frozen=True)
class EnvironmentConfig:
    """Immutable set of validated overrides taken from the environment."""

    overrides: Dict[str, Any] = field(default_factory=dict)
    source_file: Optional[str] = None

    @property
    def has_overrides(self) -> bool:
        return bool(self.overrides)


class EnvironmentValidator:
    """Parses raw environment strings into typed configuration values."""

    TRUE_VALUES = ('true', '1', 'yes', 'on')
    FALSE_VALUES = ('false', '0', 'no', 'off')

    @classmethod
    def parse_bool(cls, value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in cls.TRUE_VALUES:
            return True
        if lowered in cls.FALSE_VALUES:
            return False
        raise EnvironmentConfigError(f"Invalid boolean value: {value}")

    @classmethod
    def validate_numeric_range(cls, value: Union[str, int, float],
                              min_val: Optional[Union[int, float]] = None,
                              max_val: Optional[Union[int, float]] = None,
                              value_type: type = int) -> Union[int, float]:
        """Validate numeric value within specified range.

        Args:
            value: The value to validate
            min_val: Minimum allowed value
            max_val: Maximum allowed value
            value_type: Expected type (int or float)

        Returns:
            The validated numeric value

        Raises:
            EnvironmentConfigError: If validation fails
        """
        try:
            numeric_value = value_type(value)
        except (ValueError, TypeError):
            raise EnvironmentConfigError(f"Invalid {value_type.__name__} value: {value}")

        if min_val is not None and numeric_value < min_val:
            raise EnvironmentConfigError(f"Value {numeric_value} below minimum {min_val}")

        if max_val is not None and numeric_value > max_val:
            raise EnvironmentConfigError(f"Value {numeric_value} above maximum {max_val}")

        return numeric_value

    @classmethod
    def coerce(cls, key: str, raw: str, template: Any) -> Any:
        """Convert ``raw`` to the type of the default value ``template``."""
        if isinstance(template, bool):
            return cls.parse_bool(raw)
        if isinstance(template, int):
            return cls.validate_numeric_range(raw, 0, None, int)
        if isinstance(template, float):
            return cls.validate_numeric_range(raw, 0.0, None, float)
        if isinstance(template, list):
            items = [item.strip() for item in raw.split(",") if item.strip()]
            if not items:
                raise EnvironmentConfigError(f"Empty list for {key}")
            return items
        return raw.strip()


def load_env_file(env_path: Optional[str] = None) -> Dict[str, str]:
    """Load KEY=VALUE pairs from a .env file.

    Args:
        env_path: Path to .env file. Defaults to .env in current directory.

    Returns:
        dict: Loaded variables (empty if the file does not exist)
    """
    if env_path is None:
        env_path = ".env"

    env_vars: Dict[str, str] = {}
    env_file_path = Path(env_path)

    if not env_file_path.exists():
        logger.debug(f"Environment file {env_path} not found, using system environment only")
        return env_vars

    try:
        with open(env_file_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                if not line or line.startswith('#'):
                    continue

                if '=' in line:
                    key, value = line.split('=', 1)
                    key = key.strip()
                    value = value.strip()

                    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                        value = value[1:-1]

                    env_vars[key] = value
                else:
                    logger.warning(f"Invalid line format in {env_path}:{line_num}: {line}")

        logger.info(f"Loaded {len(env_vars)} variables from {env_path}")

    except OSError as e:
        logger.error(f"Error reading environment file {env_path}: {e}")

    return env_vars


def load_environment_config(defaults: Dict[str, Any],
                            env_file_path: Optional[str] = None) -> EnvironmentConfig:
    """Collect ``ODOMETER_*`` overrides for every key in ``defaults``.

    Invalid values are logged and skipped so a single bad variable never
    prevents the reader from starting.
    """
    file_vars = load_env_file(env_file_path)
    validator = EnvironmentValidator()
    overrides: Dict[str, Any] = {}

    for key, template in defaults.items():
        env_key = f"{ENV_PREFIX}{key.upper()}"
        raw = os.environ.get(env_key, file_vars.get(env_key))
        if raw is None:
            continue
        try:
            overrides[key] = validator.coerce(key, raw, template)
        except EnvironmentConfigError as e:
            logger.warning(f"Ignoring {env_key}: {e}")

    if overrides:
        logger.info(f"Environment overrides applied for: {sorted(overrides)}")

    return EnvironmentConfig(
        overrides=overrides,
        source_file=env_file_path if file_vars else None,
    )


__all__ = [
    "ENV_PREFIX",
    "EnvironmentConfig",
    "EnvironmentConfigError",
    "EnvironmentValidator",
    "load_environment_config",
    "load_env_file",
]
