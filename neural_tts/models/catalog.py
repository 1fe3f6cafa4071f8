"""Static catalog of downloadable voice models.

Declared file sizes are the exact upstream ``Content-Length`` values; the
readiness check in ``ModelManager`` compares against them byte for byte.
``tests/integration/test_catalog_remote.py`` re-verifies them against the
host (``pytest -m network``).
"""

from dataclasses import dataclass

CONFIG_SUFFIX = ".onnx.json"
WEIGHTS_SUFFIX = ".onnx"


@dataclass(frozen=True)
class ModelFile:
    """One file a voice model needs on disk."""

    name: str
    size: int
    path: str
    checksum: str | None = None  # sha256 hex, verified after download when present


@dataclass(frozen=True)
class VoiceModel:
    """Catalog entry for a downloadable voice model."""

    id: str
    name: str
    language: str
    description: str
    size_bytes: int
    files: tuple[ModelFile, ...]
    base_url: str

    @property
    def dir_name(self) -> str:
        return self.id

    @property
    def size_mb(self) -> float:
        return round(self.size_bytes / (1024 * 1024), 1)

    @property
    def config_file(self) -> ModelFile | None:
        """The Piper ``.onnx.json`` descriptor."""
        return next((f for f in self.files if f.name.endswith(CONFIG_SUFFIX)), None)

    @property
    def weights_file(self) -> ModelFile | None:
        """The ONNX graph."""
        return next(
            (
                f
                for f in self.files
                if f.name.endswith(WEIGHTS_SUFFIX) and not f.name.endswith(CONFIG_SUFFIX)
            ),
            None,
        )

    def url_for(self, file: ModelFile) -> str:
        return f"{self.base_url.rstrip('/')}/{file.name}"


PIPER_EN_US = VoiceModel(
    id="piper-en-us",
    name="Piper US English",
    language="en-US",
    description="Natural US English voice (lessac, medium quality)",
    size_bytes=63_206_179,
    files=(
        ModelFile(
            name="en_US-lessac-medium.onnx",
            size=63_201_294,
            path="en_US-lessac-medium.onnx",
        ),
        ModelFile(
            name="en_US-lessac-medium.onnx.json",
            size=4_885,
            path="en_US-lessac-medium.onnx.json",
        ),
    ),
    base_url="https://huggingface.co/rhasspy/piper-voices/resolve/main/en/en_US/lessac/medium",
)


class ModelCatalog:
    """Lookup over a fixed set of voice models."""

    def __init__(self, models: list[VoiceModel] | tuple[VoiceModel, ...]) -> None:
        self._models: dict[str, VoiceModel] = {}
        for model in models:
            if model.id in self._models:
                raise ValueError(f"Duplicate model id in catalog: {model.id}")
            self._models[model.id] = model

    def lookup(self, model_id: str) -> VoiceModel | None:
        return self._models.get(model_id)

    def list_models(self) -> list[VoiceModel]:
        return list(self._models.values())

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)


DEFAULT_CATALOG = ModelCatalog([PIPER_EN_US])


def lookup(model_id: str) -> VoiceModel | None:
    """Find a model in the built-in catalog."""
    return DEFAULT_CATALOG.lookup(model_id)


def list_models() -> list[VoiceModel]:
    """All models in the built-in catalog."""
    return DEFAULT_CATALOG.list_models()
