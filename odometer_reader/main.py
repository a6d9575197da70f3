"""Command-line entry point: read odometer photos and print JSON results."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config.settings import load_config
from .core.constants import APP_NAME, VERSION
from .core.exceptions import ApplicationError
from .core.logging_config import configure_logging
from .services.image_loader import load_image
from .services.pipeline import OdometerPipeline
from .services.reading_service import OdometerReadingService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Read the digits of odometer photographs with a YOLO digit detector.",
    )
    parser.add_argument("images", nargs="+", help="Image files to read")
    parser.add_argument("--config", default="config.json", help="Path to config.json")
    parser.add_argument("--env-file", default=None, help="Path to a .env file with ODOMETER_* overrides")
    parser.add_argument("--model", default=None, help="Model weights (overrides model_path)")
    parser.add_argument("--device", default=None, help="Torch device, e.g. cpu or cuda:0")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--diagnostics", action="store_true",
                        help="Include digit count, crop pass status and quality assessment")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config, env_file=args.env_file)
    if args.model:
        config.model_path = args.model
    if args.device:
        config.device = args.device
    if args.log_level:
        config.log_level = args.log_level.upper()

    configure_logging(
        log_level=config.log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.enable_file_logging,
        structured_logging=config.structured_logging,
    )

    try:
        pipeline = OdometerPipeline.from_config(config, strict=True)
    except ApplicationError as e:
        logger.error(f"Failed to start: {e}")
        return 2

    exit_code = 0
    with OdometerReadingService(pipeline, config) as service:
        for path in args.images:
            try:
                image = load_image(path, max_dim=config.max_decode_dim)
                record = service.read(image, source=path)
            except ApplicationError as e:
                logger.error(f"{path}: {type(e).__name__}: {e}")
                print(json.dumps({"image": path, "error": str(e), "errorType": type(e).__name__}))
                exit_code = 1
                continue

            payload = {"image": path, **record.result.to_dict(diagnostics=args.diagnostics)}
            if args.diagnostics:
                payload["quality"] = record.assessment.status.value
                payload["message"] = record.assessment.message
            print(json.dumps(payload))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
