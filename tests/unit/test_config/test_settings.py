"""Unit tests for configuration loading, validation and env overrides."""
import json

import pytest

from odometer_reader.config.defaults import DEFAULT_CONFIG
from odometer_reader.config.env_config import load_env_file, load_environment_config, EnvironmentValidator, EnvironmentConfigError
from odometer_reader.config.settings import Config, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip any ODOMETER_* variables from the test environment."""
    import os
    for key in list(os.environ):
        if key.startswith("ODOMETER_"):
            monkeypatch.delenv(key)


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestLoadConfig:

    def test_defaults_when_file_missing(self, tmp_path):
        cfg = load_config(str(tmp_path / "missing.json"), env_file=str(tmp_path / ".env"))

        assert cfg.confidence_threshold == 0.3
        assert cfg.iou_threshold == 0.5
        assert cfg.crop_margin_px == 60
        assert cfg.crop_min_aspect == 0.6
        assert cfg.crop_max_aspect == 1.7
        assert cfg.class_names == DEFAULT_CONFIG["class_names"]

    def test_file_values_override_defaults(self, tmp_path):
        path = _write(tmp_path, {"crop_margin_px": 80, "model_path": "weights/odo.pt"})

        cfg = load_config(path, env_file=str(tmp_path / ".env"))

        assert cfg.crop_margin_px == 80
        assert cfg.model_path == "weights/odo.pt"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        cfg = load_config(str(path), env_file=str(tmp_path / ".env"))

        assert cfg.to_dict()["confidence_threshold"] == DEFAULT_CONFIG["confidence_threshold"]

    def test_non_object_file_falls_back_to_defaults(self, tmp_path):
        path = _write(tmp_path, [1, 2, 3])

        assert load_config(path, env_file=str(tmp_path / ".env")).history_size == 5

    @pytest.mark.parametrize("key,bad", [
        ("confidence_threshold", 1.5),
        ("iou_threshold", "high"),
        ("model_input_size", 0),
        ("crop_margin_px", -5),
        ("class_names", []),
        ("log_level", "LOUD"),
        ("memory_guard_enabled", "yes"),
    ])
    def test_invalid_values_replaced_by_defaults(self, tmp_path, key, bad):
        path = _write(tmp_path, {key: bad})

        cfg = load_config(path, env_file=str(tmp_path / ".env"))

        assert getattr(cfg, key) == DEFAULT_CONFIG[key]

    def test_inverted_aspect_window_is_reset(self, tmp_path):
        path = _write(tmp_path, {"crop_min_aspect": 2.0, "crop_max_aspect": 1.0})

        cfg = load_config(path, env_file=str(tmp_path / ".env"))

        assert (cfg.crop_min_aspect, cfg.crop_max_aspect) == (0.6, 1.7)

    def test_unknown_keys_kept_in_extra(self, tmp_path):
        path = _write(tmp_path, {"operator_name": "fleet-7"})

        cfg = load_config(path, env_file=str(tmp_path / ".env"))

        assert cfg.extra == {"operator_name": "fleet-7"}
        assert cfg.get("operator_name") == "fleet-7"
        assert cfg.get("missing", "fallback") == "fallback"
        assert cfg.get("iou_threshold") == 0.5

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = _write(tmp_path, {"confidence_threshold": 0.4, "device": "cpu"})
        monkeypatch.setenv("ODOMETER_CONFIDENCE_THRESHOLD", "0.45")
        monkeypatch.setenv("ODOMETER_DEVICE", "cuda:0")

        cfg = load_config(path, env_file=str(tmp_path / ".env"))

        assert cfg.confidence_threshold == pytest.approx(0.45)
        assert cfg.device == "cuda:0"

    def test_env_file_overrides(self, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text("# comment\nODOMETER_CROP_MARGIN_PX=75\nODOMETER_STRUCTURED_LOGGING='true'\n",
                            encoding="utf-8")

        cfg = load_config(str(tmp_path / "missing.json"), env_file=str(env_path))

        assert cfg.crop_margin_px == 75
        assert cfg.structured_logging is True

    def test_invalid_environment_value_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ODOMETER_HISTORY_SIZE", "many")

        cfg = load_config(str(tmp_path / "missing.json"), env_file=str(tmp_path / ".env"))

        assert cfg.history_size == 5


class TestEnvironmentHelpers:

    def test_load_env_file_missing(self, tmp_path):
        assert load_env_file(str(tmp_path / "nope.env")) == {}

    def test_load_env_file_strips_quotes(self, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text('ODOMETER_MODEL_PATH="models/best.pt"\nbroken line\n', encoding="utf-8")

        assert load_env_file(str(env_path)) == {"ODOMETER_MODEL_PATH": "models/best.pt"}

    def test_list_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ODOMETER_CLASS_NAMES", "0,1,2,3,4,5,6,7,8,9,analog,digital")

        env = load_environment_config(DEFAULT_CONFIG, str(tmp_path / ".env"))

        assert env.overrides["class_names"][-1] == "digital"
        assert env.has_overrides

    def test_parse_bool_rejects_garbage(self):
        with pytest.raises(EnvironmentConfigError):
            EnvironmentValidator.parse_bool("maybe")

    def test_config_defaults_are_independent(self):
        a, b = Config(), Config()
        a.class_names.append("odometer")

        assert "odometer" not in b.class_names
