"""Tests for text normalization, sentence splitting and chunking."""

import pytest

from neural_tts.models.piper.preprocessor import TextPreprocessor


@pytest.fixture
def preprocessor() -> TextPreprocessor:
    return TextPreprocessor(max_chunk_chars=500)


class TestNormalize:
    def test_whitespace_collapsed(self, preprocessor: TextPreprocessor):
        assert preprocessor.normalize("  Hello\r\nworld\tagain  ") == "Hello world again"

    def test_urls_removed(self, preprocessor: TextPreprocessor):
        text = "See https://example.com/page?x=1 for details."
        assert preprocessor.normalize(text) == "See for details."

    def test_blank_text(self, preprocessor: TextPreprocessor):
        assert preprocessor.normalize(" \n\t ") == ""


class TestSplitSentences:
    def test_keeps_terminal_punctuation(self, preprocessor: TextPreprocessor):
        sentences = preprocessor.split_sentences("Hi. How are you? Fine!")
        assert sentences == ["Hi.", "How are you?", "Fine!"]

    def test_text_without_punctuation(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_sentences("No punctuation here") == ["No punctuation here"]

    def test_repeated_punctuation_stays_attached(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_sentences("Wait... what?!") == ["Wait...", "what?!"]

    def test_empty(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_sentences("") == []


class TestSplitIntoChunks:
    def test_short_text_single_chunk(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_into_chunks("One. Two. Three.") == ["One. Two. Three."]

    def test_exactly_at_limit_is_one_chunk(self, preprocessor: TextPreprocessor):
        first = "a" * 248 + "."
        second = "b" * 249 + "."
        text = f"{first} {second}"
        assert len(text) == 500

        assert preprocessor.split_into_chunks(text) == [text]

    def test_one_over_limit_splits_at_sentence(self, preprocessor: TextPreprocessor):
        first = "a" * 248 + "."
        second = "b" * 250 + "."
        assert len(f"{first} {second}") == 501

        assert preprocessor.split_into_chunks(f"{first} {second}") == [first, second]

    def test_oversized_sentence_is_its_own_chunk(self, preprocessor: TextPreprocessor):
        long_sentence = "c" * 600 + "."

        chunks = preprocessor.split_into_chunks(f"Short. {long_sentence} End.")

        assert chunks == ["Short.", long_sentence, "End."]

    def test_max_chars_override(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_into_chunks("Aa. Bb. Cc.", max_chars=7) == ["Aa. Bb.", "Cc."]

    def test_no_text_lost(self, preprocessor: TextPreprocessor):
        text = " ".join(f"Sentence number {i} is here." for i in range(100))

        chunks = preprocessor.split_into_chunks(text)

        assert all(len(c) <= 500 for c in chunks)
        assert " ".join(chunks) == text

    def test_empty_text_no_chunks(self, preprocessor: TextPreprocessor):
        assert preprocessor.split_into_chunks("") == []
