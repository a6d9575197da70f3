"""Services package for the reading pipeline."""

from .detector import Detector, DetectorBackend, UltralyticsBackend
from .detection_parser import DetectionParser
from .framing import letterbox, center_crop_with_margin, is_crop_admissible
from .image_loader import load_image
from .nms import NonMaxSuppressor
from .pipeline import OdometerPipeline, PassWorkspace
from .reading_assembler import assemble_reading
from .reading_quality import ReadingStatus, ReadingAssessment, assess_reading
from .reading_service import OdometerReadingService, ReadingRecord
from .reconciler import reconcile
from .tensor_encoder import encode_canvas

__all__ = [
    "Detector", "DetectorBackend", "UltralyticsBackend",
    "DetectionParser", "NonMaxSuppressor",
    "letterbox", "center_crop_with_margin", "is_crop_admissible",
    "load_image", "encode_canvas", "assemble_reading", "reconcile",
    "OdometerPipeline", "PassWorkspace",
    "ReadingStatus", "ReadingAssessment", "assess_reading",
    "OdometerReadingService", "ReadingRecord",
]
