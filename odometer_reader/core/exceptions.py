"""Custom exceptions for the application."""

class ApplicationError(Exception):
    """Base application error."""
    pass

class ConfigError(ApplicationError):
    """Configuration-related errors."""
    pass

class DetectionError(ApplicationError):
    """Base exception for detection-related errors."""
    pass

class ModelUnavailableError(DetectionError):
    """Detector was never loaded; no pass can run."""
    pass

class InvalidInputError(DetectionError):
    """Pixel buffer is missing, malformed or has a zero dimension."""
    pass

class GeometryError(DetectionError):
    """Framing or encoding received dimensions it cannot work with."""
    pass

class PassError(DetectionError):
    """Failure inside a single inference pass."""

    def __init__(self, message: str, pass_name: str = "", cause: BaseException = None):
        super().__init__(message)
        self.pass_name = pass_name
        self.cause = cause

class PassMemoryExhausted(PassError):
    """Allocation or inference failure within a pass."""
    pass

class PassUnexpectedFailure(PassError):
    """Any other error raised within a pass."""
    pass

class ModelError(ApplicationError):
    """Model loading/inference errors."""
    pass

class ModelLoadError(ModelError):
    """Model weights could not be loaded."""
    pass

class InferenceError(ModelError):
    """Model inference failed or returned an unusable tensor."""
    pass
