"""Tests for the command-line entry point."""
import json
from unittest.mock import patch

import pytest
from PIL import Image

from odometer_reader import main as cli
from odometer_reader.core.constants import APP_NAME, VERSION
from odometer_reader.core.exceptions import ModelLoadError


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "dash.png"
    Image.new("RGB", (640, 480), (40, 40, 40)).save(path)
    return str(path)


@pytest.fixture
def run_cli(tmp_path, capsys):
    def _run(argv, pipeline=None, load_error=None):
        argv = ["--config", str(tmp_path / "config.json")] + argv
        with patch.object(cli, "configure_logging"), \
                patch.object(cli.OdometerPipeline, "from_config") as from_config:
            if load_error is not None:
                from_config.side_effect = load_error
            else:
                from_config.return_value = pipeline
            code = cli.main(argv)
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]
        return code, lines
    return _run


def test_prints_reading(run_cli, make_pipeline, digit_row, photo):
    pipeline, _ = make_pipeline([digit_row])

    code, lines = run_cli([photo], pipeline)

    assert code == 0
    assert lines == [{
        "image": photo,
        "value": "1234",
        "type": "digital",
        "confidence": pytest.approx(0.75, abs=1e-6),
        "detectionMethod": "Original",
    }]


def test_diagnostics_output(run_cli, make_pipeline, digit_row, photo):
    pipeline, _ = make_pipeline([digit_row])

    _, lines = run_cli([photo, "--diagnostics"], pipeline)

    out = lines[0]
    assert out["digitCount"] == 4
    assert out["cropStatus"] == "ok"
    assert out["cropCause"] is None
    assert out["quality"] == "ok"
    assert "1234" in out["message"]


def test_bad_image_reported_and_continues(run_cli, make_pipeline, digit_row, photo, tmp_path):
    pipeline, _ = make_pipeline([digit_row])
    broken = tmp_path / "broken.jpg"
    broken.write_text("garbage")

    code, lines = run_cli([str(broken), photo], pipeline)

    assert code == 1
    assert lines[0]["errorType"] == "InvalidInputError"
    assert lines[1]["value"] == "1234"


def test_model_load_failure(run_cli, photo):
    code, lines = run_cli([photo], load_error=ModelLoadError("Model file not found: x.pt"))

    assert code == 2
    assert lines == []


def test_model_and_device_overrides(tmp_path, make_pipeline, photo, capsys):
    pipeline, _ = make_pipeline()

    with patch.object(cli, "configure_logging") as configure, \
            patch.object(cli.OdometerPipeline, "from_config", return_value=pipeline) as from_config:
        cli.main([photo, "--config", str(tmp_path / "none.json"), "--model", "custom.pt",
                  "--device", "cuda:0", "--log-level", "debug"])

    config = from_config.call_args[0][0]
    assert config.model_path == "custom.pt"
    assert config.device == "cuda:0"
    assert configure.call_args.kwargs["log_level"] == "DEBUG"
    capsys.readouterr()


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == f"{APP_NAME} {VERSION}"
