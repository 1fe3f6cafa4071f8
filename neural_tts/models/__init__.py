"""Voice model catalog, storage and the Piper model family."""

from neural_tts.models.catalog import (
    DEFAULT_CATALOG,
    PIPER_EN_US,
    ModelCatalog,
    ModelFile,
    VoiceModel,
    list_models,
    lookup,
)
from neural_tts.models.manager import ModelManager, ModelStatus

__all__ = [
    "DEFAULT_CATALOG",
    "PIPER_EN_US",
    "ModelCatalog",
    "ModelFile",
    "VoiceModel",
    "list_models",
    "lookup",
    "ModelManager",
    "ModelStatus",
]
