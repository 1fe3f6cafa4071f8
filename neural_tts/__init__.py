"""Neural TTS - local Piper voices on ONNX Runtime."""

__version__ = "0.1.0"
