"""Exception hierarchy for the neural TTS pipeline.

Every failure that crosses a component boundary is one of these; foreign
library errors (httpx, onnxruntime, soundfile, sounddevice, OSError) are
wrapped with ``raise ... from``.

- NeuralTTSError: base with error_code, message, details, http_status
- ModelNotLoadedError (503): model absent or not loaded
- UnknownModelError (404): model id not in the catalog
- DownloadFailedError (502): HTTP/transport failure fetching model files
- ModelStorageError (500): model directory cannot be written or removed
- InferenceError (500): ONNX Runtime failure
- PhonemeError (422): phonemizer missing/failed or no usable symbols
- ConfigError (500): model descriptor missing or malformed
- AudioError (500): device, stream or decoding failure
- BusyError (409): another utterance or download is in progress
"""

from typing import Any


class NeuralTTSError(Exception):
    """
    Base exception for all neural TTS errors.

    All exceptions have:
    - error_code: Unique string identifier (e.g., "TTS_E100")
    - message: Human-readable error message
    - details: Additional context as a dictionary
    - http_status: HTTP status code when surfaced through the API
    """

    error_code: str = "TTS_E000"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        if http_status is not None:
            self.http_status = http_status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.error_code}, message={self.message!r})"


# =============================================================================
# Model availability
# =============================================================================


class ModelNotLoadedError(NeuralTTSError):
    """Raised when the requested model is not downloaded or not loaded (503)."""

    error_code = "TTS_E100"
    http_status = 503

    def __init__(self, model_id: str, reason: str | None = None) -> None:
        details: dict[str, Any] = {"model": model_id}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=f"Model not available: {model_id}" + (f" ({reason})" if reason else ""),
            details=details,
        )
        self.model_id = model_id


class UnknownModelError(ModelNotLoadedError):
    """Raised when a model id is not in the catalog (404)."""

    error_code = "TTS_E101"
    http_status = 404

    def __init__(self, model_id: str) -> None:
        super().__init__(model_id, reason="unknown model id")


# =============================================================================
# Acquisition
# =============================================================================


class DownloadFailedError(NeuralTTSError):
    """Raised when fetching a model file fails (502)."""

    error_code = "TTS_E200"
    http_status = 502

    def __init__(
        self,
        message: str,
        file: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if file:
            details["file"] = file
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message=message, details=details)
        self.status_code = status_code


class ModelStorageError(NeuralTTSError):
    """Raised when the model directory cannot be created or removed (500)."""

    error_code = "TTS_E210"

    def __init__(self, message: str, path: str | None = None, reason: str | None = None) -> None:
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if reason:
            details["reason"] = reason
        super().__init__(message=message, details=details)


# =============================================================================
# Synthesis pipeline
# =============================================================================


class ConfigError(NeuralTTSError):
    """Raised when a model config descriptor is missing or malformed (500)."""

    error_code = "TTS_E300"

    def __init__(self, message: str, path: str | None = None, reason: str | None = None) -> None:
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if reason:
            details["reason"] = reason
        super().__init__(message=message, details=details)


class PhonemeError(NeuralTTSError):
    """Raised when phonemization fails or yields nothing usable (422)."""

    error_code = "TTS_E310"
    http_status = 422

    def __init__(self, message: str, reason: str | None = None) -> None:
        details: dict[str, Any] = {}
        if reason:
            details["reason"] = reason
        super().__init__(message=message, details=details)


class InferenceError(NeuralTTSError):
    """Raised when the neural runtime fails (500).

    ``shapes`` records the input tensor shapes that were attempted so model
    and runtime version mismatches can be diagnosed from the error alone.
    """

    error_code = "TTS_E320"

    def __init__(
        self,
        message: str = "Inference failed",
        reason: str | None = None,
        shapes: dict[str, list[int]] | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if reason:
            details["reason"] = reason
        if shapes:
            details["shapes"] = shapes
        super().__init__(message=message, details=details)


class AudioError(NeuralTTSError):
    """Raised on audio device, stream or decoding failure (500)."""

    error_code = "TTS_E400"

    def __init__(self, message: str, operation: str | None = None, reason: str | None = None) -> None:
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if reason:
            details["reason"] = reason
        super().__init__(message=message, details=details)


# =============================================================================
# Concurrency
# =============================================================================


class BusyError(NeuralTTSError):
    """Raised when an exclusive operation is already running (409)."""

    error_code = "TTS_E500"
    http_status = 409

    def __init__(self, operation: str = "speech") -> None:
        super().__init__(
            message=f"Another {operation} operation is already in progress",
            details={"operation": operation},
        )
