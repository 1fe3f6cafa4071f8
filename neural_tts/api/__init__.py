"""HTTP API for the neural TTS service."""

from neural_tts.api.app import create_app

__all__ = ["create_app"]
