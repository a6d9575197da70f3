"""Detection model handle.

``Detector`` owns one loaded model backend and serialises every ``infer``
call behind a single lock, so at most one inference is in flight no matter how
many threads share the handle. The default backend loads Ultralytics YOLO
weights and calls the underlying PyTorch module directly to get the raw head
output ``[1, 4 + num_classes, anchors]`` (box params first, then class
scores) instead of Ultralytics' post-processed boxes.
"""
from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol, Tuple, Union

import numpy as np

from ..core.exceptions import InferenceError, ModelLoadError, ModelUnavailableError

logger = logging.getLogger(__name__)

ModelSource = Union[str, Path, bytes, bytearray]


class DetectorBackend(Protocol):
    """Minimal tensor-in/tensor-out contract the pipeline relies on."""

    input_size: Optional[int]
    boxes_normalized: bool

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


class UltralyticsBackend:
    """Raw-output backend over an Ultralytics YOLO detection checkpoint."""

    boxes_normalized = False

    def __init__(self, weights_path: Union[str, Path], device: str = "cpu"):
        try:
            import torch
            from ultralytics import YOLO
        except ImportError as e:
            raise ModelLoadError(
                "Ultralytics/PyTorch not installed. Install with: pip install ultralytics"
            ) from e

        self._torch = torch
        self._device = torch.device(device)
        yolo = YOLO(str(weights_path), task="detect")
        module = yolo.model
        if not isinstance(module, torch.nn.Module):
            raise ModelLoadError(
                f"Unsupported model format for raw inference: {weights_path} "
                "(PyTorch .pt weights required)"
            )
        self._module = module.float().eval().to(self._device)
        self.input_size = self._read_input_size(module)

    @staticmethod
    def _read_input_size(module) -> Optional[int]:
        args = getattr(module, "args", None) or {}
        imgsz = args.get("imgsz") if isinstance(args, dict) else getattr(args, "imgsz", None)
        if isinstance(imgsz, (list, tuple)) and imgsz:
            imgsz = imgsz[0]
        try:
            return int(imgsz) if imgsz else None
        except (TypeError, ValueError):
            return None

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.from_numpy(tensor).permute(0, 3, 1, 2).contiguous().to(self._device)
        with torch.inference_mode():
            out = self._module(x)
        if isinstance(out, (list, tuple)):
            out = out[0]
        return out.detach().float().cpu().numpy()

    def close(self) -> None:
        self._module = None


BackendFactory = Callable[[str], DetectorBackend]


class Detector:
    """Long-lived, thread-safe handle around a loaded detection backend."""

    def __init__(self, backend_factory: Optional[BackendFactory] = None,
                 default_input_size: int = 640, device: str = "cpu"):
        """Initialize an unloaded detector.

        Args:
            backend_factory: Callable building a backend from a weights path;
                defaults to ``UltralyticsBackend`` on ``device``
            default_input_size: Input size used when the model reports none
            device: Torch device for the default backend
        """
        self._backend_factory = backend_factory or (
            lambda path: UltralyticsBackend(path, device=device)
        )
        self.default_input_size = default_input_size
        self._backend: Optional[DetectorBackend] = None
        self._lock = threading.Lock()
        self.source_name: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._backend is not None

    @property
    def input_size(self) -> int:
        backend = self._backend
        size = getattr(backend, "input_size", None) if backend else None
        return int(size) if size else self.default_input_size

    @property
    def boxes_normalized(self) -> bool:
        backend = self._backend
        return bool(getattr(backend, "boxes_normalized", False)) if backend else False

    def load(self, source: ModelSource, suffix: str = ".pt") -> "Detector":
        """Load model weights from a path or from raw model bytes.

        Raw bytes are written to a temporary file for the backend and removed
        once loading finishes.

        Raises:
            ModelLoadError: If the weights are missing or cannot be loaded
        """
        if isinstance(source, (bytes, bytearray)):
            if not source:
                raise ModelLoadError("Model bytes are empty")
            fd, tmp_path = tempfile.mkstemp(suffix=suffix)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(source)
                backend = self._build_backend(tmp_path)
            finally:
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning(f"Could not remove temporary model file {tmp_path}")
            name = f"<{len(source)} bytes>"
        else:
            path = Path(source)
            if not path.is_file():
                raise ModelLoadError(f"Model file not found: {path}")
            backend = self._build_backend(str(path))
            name = str(path)

        self.attach(backend, name)
        return self

    def _build_backend(self, path: str) -> DetectorBackend:
        try:
            return self._backend_factory(path)
        except ModelLoadError:
            raise
        except Exception as e:
            logger.error(f"Error loading model from {path}: {e}")
            raise ModelLoadError(f"Failed to load model: {e}") from e

    def attach(self, backend: DetectorBackend, name: str = "<backend>") -> None:
        """Install an already-constructed backend, replacing any previous one."""
        with self._lock:
            previous = self._backend
            self._backend = backend
            self.source_name = name
        if previous is not None and previous is not backend:
            previous.close()
        logger.info(f"Detector ready: {name} (input size {self.input_size})")

    def expected_input_shape(self) -> Tuple[int, int, int, int]:
        size = self.input_size
        return (1, size, size, 3)

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        """Run one inference; blocks while another inference is in flight.

        Raises:
            ModelUnavailableError: If no model is loaded
            InferenceError: On a malformed input tensor, a backend failure or
                an output that is not a 3-D array
        """
        with self._lock:
            backend = self._backend
            if backend is None:
                raise ModelUnavailableError("Detector is not loaded")

            expected = (1, self.input_size, self.input_size, 3)
            if not isinstance(tensor, np.ndarray) or tensor.shape != expected:
                shape = getattr(tensor, "shape", None)
                raise InferenceError(f"Input tensor shape {shape} does not match {expected}")

            try:
                raw = backend.infer(tensor)
            except (MemoryError, InferenceError):
                raise
            except Exception as e:
                raise InferenceError(f"Inference failed: {e}") from e

        raw = np.asarray(raw, dtype=np.float32)
        if raw.ndim != 3 or raw.shape[0] != 1:
            raise InferenceError(f"Unexpected output shape {raw.shape}; expected [1, C, A]")
        return raw

    def close(self) -> None:
        with self._lock:
            backend = self._backend
            self._backend = None
        if backend is not None:
            backend.close()
            logger.info("Detector closed")
