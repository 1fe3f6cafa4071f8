"""Text preparation before phonemization.

- Whitespace cleanup and URL removal
- Sentence splitting that keeps terminal punctuation
- Packing sentences into bounded chunks for whole-text synthesis
"""

import re

_URL_RE = re.compile(r"https?://\S+")
_SPACES_RE = re.compile(r" {2,}")
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*|[.!?]+")

DEFAULT_MAX_CHUNK_CHARS = 500


class TextPreprocessor:
    """
    Normalizes and chunks text for Piper synthesis.

    Args:
        max_chunk_chars: Upper bound on chunk length for ``split_into_chunks``
    """

    def __init__(self, max_chunk_chars: int = DEFAULT_MAX_CHUNK_CHARS) -> None:
        self.max_chunk_chars = max_chunk_chars

    def normalize(self, text: str) -> str:
        """
        Clean text for the phonemizer.

        Newlines and tabs become spaces, URLs are dropped, runs of spaces
        collapse to one and the result is trimmed.
        """
        text = text.replace("\r", " ").replace("\n", " ").replace("\t", " ")
        text = _URL_RE.sub("", text)
        text = _SPACES_RE.sub(" ", text)
        return text.strip()

    def split_sentences(self, text: str) -> list[str]:
        """Split on ``.``, ``!`` and ``?``, keeping the punctuation with its sentence."""
        return [m.group(0).strip() for m in _SENTENCE_RE.finditer(text) if m.group(0).strip()]

    def split_into_chunks(self, text: str, max_chars: int | None = None) -> list[str]:
        """
        Pack whole sentences into chunks of at most ``max_chars`` characters.

        A sentence is never split; one longer than the limit becomes its own
        chunk.

        Args:
            text: Normalized text
            max_chars: Override for the configured limit

        Returns:
            Non-empty chunks in reading order
        """
        limit = max_chars or self.max_chunk_chars
        chunks: list[str] = []
        current = ""

        for sentence in self.split_sentences(text):
            if not current:
                current = sentence
            elif len(current) + 1 + len(sentence) <= limit:
                current = f"{current} {sentence}"
            else:
                chunks.append(current)
                current = sentence

        if current:
            chunks.append(current)
        return chunks
