"""Tests for the voice model catalog."""

import pytest

from neural_tts.models.catalog import (
    DEFAULT_CATALOG,
    PIPER_EN_US,
    ModelCatalog,
    list_models,
    lookup,
)
from tests.factories import make_voice_model


class TestBuiltinCatalog:
    """Tests for the shipped catalog."""

    def test_lookup_known_id(self):
        model = lookup("piper-en-us")

        assert model is PIPER_EN_US
        assert model.language == "en-US"

    def test_lookup_unknown_id_returns_none(self):
        assert lookup("nonexistent") is None

    def test_list_models_contains_default_voice(self):
        ids = [m.id for m in list_models()]
        assert "piper-en-us" in ids

    def test_piper_files_and_sizes(self):
        sizes = {f.name: f.size for f in PIPER_EN_US.files}

        assert sizes == {
            "en_US-lessac-medium.onnx": 63_201_294,
            "en_US-lessac-medium.onnx.json": 4_885,
        }
        assert PIPER_EN_US.size_bytes == sum(sizes.values())

    def test_config_and_weights_files(self):
        assert PIPER_EN_US.config_file.name == "en_US-lessac-medium.onnx.json"
        assert PIPER_EN_US.weights_file.name == "en_US-lessac-medium.onnx"

    def test_url_for_joins_base_url(self):
        url = PIPER_EN_US.url_for(PIPER_EN_US.weights_file)

        assert url.startswith("https://huggingface.co/rhasspy/piper-voices/")
        assert url.endswith("/en/en_US/lessac/medium/en_US-lessac-medium.onnx")

    def test_size_mb(self):
        assert PIPER_EN_US.size_mb == pytest.approx(60.3, abs=0.1)


class TestModelCatalog:
    """Tests for ModelCatalog."""

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            ModelCatalog([make_voice_model("a"), make_voice_model("a")])

    def test_contains_and_len(self):
        catalog = ModelCatalog([make_voice_model("a"), make_voice_model("b")])

        assert "a" in catalog
        assert "c" not in catalog
        assert len(catalog) == 2

    def test_list_models_keeps_order(self):
        catalog = ModelCatalog([make_voice_model("b"), make_voice_model("a")])
        assert [m.id for m in catalog.list_models()] == ["b", "a"]

    def test_default_catalog_matches_module_functions(self):
        assert DEFAULT_CATALOG.list_models() == list_models()
