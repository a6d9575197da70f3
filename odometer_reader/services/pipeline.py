"""Dual-pass odometer reading pipeline.

One photograph is read twice, strictly one pass after the other:

1. the full frame, letterboxed onto the model input square;
2. a center crop with a margin, when the photo's aspect ratio allows it.

Each pass owns its canvas and tensor through a ``PassWorkspace`` and drops
them before the next pass starts. Per-pass failures are turned into
``PassOutcome`` values instead of propagating: a failed crop pass degrades to
the empty summary, a failed full pass fails the reading.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from ..config.settings import Config
from ..core.constants import PASS_CROP, PASS_FULL
from ..core.entities import PassOutcome, PassStatus, PipelineResult, PredictionSummary
from ..core.exceptions import (
    InferenceError, InvalidInputError, ModelLoadError, ModelUnavailableError,
    PassError, PassMemoryExhausted, PassUnexpectedFailure,
)
from ..core.memory_manager import MemoryGuard, estimate_pass_bytes
from .detection_parser import DetectionParser
from .detector import Detector
from .framing import center_crop_with_margin, is_crop_admissible, letterbox
from .nms import NonMaxSuppressor
from .reading_assembler import assemble_reading
from .reconciler import reconcile
from .tensor_encoder import encode_canvas

logger = logging.getLogger(__name__)


class PassWorkspace:
    """Owns the buffers of one inference pass.

    Entering checks that the pass can be allocated at all; leaving (normally
    or through an exception) drops every buffer and runs a collection so the
    next pass starts from a clean slate.
    """

    def __init__(self, pass_name: str, target_size: int,
                 memory_guard: Optional[MemoryGuard] = None):
        self.pass_name = pass_name
        self.target_size = target_size
        self.memory_guard = memory_guard
        self.frame = None
        self.canvas: Optional[np.ndarray] = None
        self.tensor: Optional[np.ndarray] = None
        self.released = False

    def __enter__(self) -> "PassWorkspace":
        if self.memory_guard is not None:
            self.memory_guard.ensure(
                estimate_pass_bytes(self.target_size), f"{self.pass_name} pass"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.frame = None
        self.canvas = None
        self.tensor = None
        self.released = True
        if self.memory_guard is not None:
            self.memory_guard.release()
        return False


def validate_image(image) -> None:
    """Reject anything that is not a non-empty H x W x 3/4 uint8 array."""
    if image is None:
        raise InvalidInputError("No pixel buffer supplied")
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(f"Pixel buffer must be a numpy array, got {type(image).__name__}")
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise InvalidInputError(f"Pixel buffer must be H x W x 3 (RGB) or H x W x 4 (RGBA), got {image.shape}")
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        raise InvalidInputError(f"Pixel buffer has a zero dimension: {width}x{height}")
    if image.dtype != np.uint8:
        raise InvalidInputError(f"Pixel buffer must be uint8, got {image.dtype}")


class OdometerPipeline:
    """Full-frame + center-crop reading of one odometer photograph."""

    def __init__(self, detector: Detector, config: Optional[Config] = None,
                 memory_guard: Optional[MemoryGuard] = None):
        """Initialize the pipeline.

        Args:
            detector: Shared detector handle (may be unloaded; reads then fail
                with ModelUnavailableError)
            config: Pipeline settings; defaults when omitted
            memory_guard: Pre-allocation memory check; built from config when omitted
        """
        self.detector = detector
        self.config = config or Config()
        self.parser = DetectionParser(self.config.class_names, self.config.confidence_threshold)
        self.suppressor = NonMaxSuppressor(self.config.iou_threshold)
        self.memory_guard = memory_guard or MemoryGuard(
            reserve_mb=self.config.memory_reserve_mb,
            enabled=self.config.memory_guard_enabled,
        )

    @classmethod
    def from_config(cls, config: Config, strict: bool = False) -> "OdometerPipeline":
        """Build a pipeline and load the model named in ``config.model_path``.

        A load failure is logged and leaves the detector unloaded unless
        ``strict`` is set, in which case ModelLoadError propagates.
        """
        detector = Detector(default_input_size=config.model_input_size, device=config.device)
        try:
            detector.load(config.model_path)
        except ModelLoadError as e:
            if strict:
                raise
            logger.error(f"Model unavailable, readings will be rejected: {e}")
        return cls(detector, config)

    def _parser_for_detector(self) -> DetectionParser:
        if not self.detector.boxes_normalized:
            return self.parser
        return DetectionParser(
            self.parser.class_names, self.parser.conf_threshold,
            box_scale=float(self.detector.input_size),
        )

    def run_pass(self, image: np.ndarray, pass_name: str) -> PassOutcome:
        """Run one pass and classify its result.

        Raises:
            ModelUnavailableError: If the detector is unloaded
        """
        size = self.detector.input_size
        cfg = self.config

        if pass_name == PASS_CROP:
            height, width = image.shape[:2]
            if not is_crop_admissible(width, height, cfg.crop_min_aspect, cfg.crop_max_aspect):
                logger.info(f"Crop pass skipped: aspect ratio {width}x{height} outside window")
                return PassOutcome(pass_name, PassStatus.SKIPPED, PredictionSummary.empty())

        started = time.perf_counter()
        try:
            with PassWorkspace(pass_name, size, self.memory_guard) as ws:
                if pass_name == PASS_CROP:
                    ws.canvas = center_crop_with_margin(
                        image, size, size,
                        margin_px=cfg.crop_margin_px,
                        min_aspect=cfg.crop_min_aspect,
                        max_aspect=cfg.crop_max_aspect,
                    )
                    if ws.canvas is None:
                        return PassOutcome(pass_name, PassStatus.SKIPPED, PredictionSummary.empty())
                else:
                    ws.frame = letterbox(image, size)
                    ws.canvas = ws.frame.canvas

                ws.tensor = encode_canvas(ws.canvas)
                raw = self.detector.infer(ws.tensor)
                detections = self.suppressor.suppress(self._parser_for_detector().parse(raw))
                summary = assemble_reading(detections)
        except ModelUnavailableError:
            raise
        except PassError as e:
            e.pass_name = pass_name
            error: PassError = e
        except MemoryError as e:
            error = PassMemoryExhausted(f"{pass_name} pass ran out of memory: {e}", pass_name, e)
            error.__cause__ = e
        except InferenceError as e:
            error = PassMemoryExhausted(f"{pass_name} pass inference failed: {e}", pass_name, e)
            error.__cause__ = e
        except Exception as e:
            error = PassUnexpectedFailure(f"{pass_name} pass failed: {e}", pass_name, e)
            error.__cause__ = e
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{pass_name} pass: value='{summary.value}' digits={summary.digit_count} "
                f"type={summary.type} conf={summary.avg_confidence:.3f} ({elapsed_ms:.0f}ms)"
            )
            return PassOutcome(pass_name, PassStatus.OK, summary)

        status = PassStatus.FATAL if pass_name == PASS_FULL else PassStatus.DEGRADED
        return PassOutcome(pass_name, status, PredictionSummary.empty(), error)

    def read(self, image: np.ndarray) -> PipelineResult:
        """Read the odometer in ``image`` (RGB or RGBA uint8, orientation corrected).

        Raises:
            ModelUnavailableError: If the detector was never loaded
            InvalidInputError: If ``image`` is not a usable pixel buffer
            PassMemoryExhausted, PassUnexpectedFailure: If the full pass fails
        """
        if not self.detector.is_loaded:
            raise ModelUnavailableError("Detector is not loaded")
        validate_image(image)

        # Both passes share one read-only view of the caller's buffer
        source = image.view()
        source.flags.writeable = False

        started = time.perf_counter()
        full = self.run_pass(source, PASS_FULL)
        if full.status is PassStatus.FATAL:
            logger.error(f"Full-frame pass failed, reading aborted: {full.cause}")
            raise full.error

        crop = self.run_pass(source, PASS_CROP)
        if crop.status is PassStatus.DEGRADED:
            logger.warning(f"Crop pass degraded, continuing with full frame: {crop.cause}")

        chosen, method = reconcile(full.summary, crop.summary)
        result = PipelineResult(
            value=chosen.value,
            type=chosen.type,
            confidence=chosen.avg_confidence,
            detection_method=method,
            digit_count=chosen.digit_count,
            crop_status=crop.status.value,
            crop_cause=crop.cause,
        )
        logger.info(
            f"Reading '{result.value}' ({method}, conf={result.confidence:.3f}) "
            f"in {(time.perf_counter() - started) * 1000:.0f}ms"
        )
        return result
