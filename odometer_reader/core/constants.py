"""Application constants."""

APP_NAME = "odometer-reader"
VERSION = "1.0.0"

DIGIT_LABELS = tuple(str(d) for d in range(10))
TYPE_LABELS = ("analog", "digital")
# Channel order of the detection head after the four box parameters.
CLASS_NAMES = DIGIT_LABELS + TYPE_LABELS

DETECTION_ORIGINAL = "Original"
DETECTION_CROPPED = "Cropped"

PASS_FULL = "full"
PASS_CROP = "crop"
