"""Grapheme-to-phoneme conversion and Piper phoneme ID mapping.

Provides:
- Phonemizer: interface (text in, IPA string out)
- EspeakPhonemizer: espeak-ng subprocess implementation
- phonemes_to_ids(): maps IPA characters to model IDs with blank interleaving
"""

import asyncio
from abc import ABC, abstractmethod

from neural_tts.exceptions import PhonemeError
from neural_tts.models.piper.config import BOS, EOS, PAD, SPACE
from neural_tts.utils.logging import get_logger

logger = get_logger("phonemizer")


class Phonemizer(ABC):
    """Converts normalized text into an IPA phoneme string."""

    @abstractmethod
    async def phonemize(self, text: str, voice: str) -> str:
        """
        Phonemize ``text`` with the given espeak voice selector.

        Raises:
            PhonemeError: If the backend is missing or fails
        """


class EspeakPhonemizer(Phonemizer):
    """
    Runs ``espeak-ng --ipa -q -v <voice> -- <text>`` and returns its stdout.

    ``--`` ends option parsing, so text starting with ``-`` is spoken as text.

    Args:
        binary: Executable name or path
    """

    def __init__(self, binary: str = "espeak-ng") -> None:
        self.binary = binary

    async def phonemize(self, text: str, voice: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                "--ipa",
                "-q",
                "-v",
                voice,
                "--",
                text,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise PhonemeError(
                f"{self.binary} not found (is espeak-ng installed?)",
                reason=str(e),
            ) from e
        except OSError as e:
            raise PhonemeError(f"Failed to start {self.binary}", reason=str(e)) from e

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise PhonemeError(
                f"{self.binary} exited with status {process.returncode}",
                reason=stderr.decode("utf-8", errors="replace").strip() or None,
            )

        phonemes = stdout.decode("utf-8", errors="replace").strip()
        logger.debug("Phonemized text", voice=voice, text_length=len(text), phonemes=phonemes)
        return phonemes


def phonemes_to_ids(phonemes: str, id_map: dict[str, list[int]]) -> list[int]:
    """
    Map an IPA string to Piper input IDs.

    Layout: ``BOS PAD (sym PAD)* EOS``. Piper's VITS models need the pad
    (blank) IDs after every symbol, whitespace included; without them the
    output is unintelligible. Whitespace uses the map's space entry when it
    has one. Characters missing from the map are dropped.

    Raises:
        PhonemeError: If no character of ``phonemes`` could be mapped
    """
    blank = id_map.get(PAD, [])
    space = id_map.get(SPACE)

    ids: list[int] = []
    ids.extend(id_map.get(BOS, []))
    ids.extend(blank)

    mapped = 0
    skipped: list[str] = []

    for ch in phonemes:
        symbol_ids = id_map.get(ch)
        if symbol_ids is not None:
            ids.extend(symbol_ids)
            mapped += 1
        elif ch.isspace():
            if space is not None:
                ids.extend(space)
        else:
            skipped.append(ch)
            continue
        ids.extend(blank)

    ids.extend(id_map.get(EOS, []))

    if skipped:
        logger.debug(
            "Dropped unmapped phoneme symbols",
            count=len(skipped),
            symbols=sorted({f"U+{ord(c):04X}" for c in skipped}),
        )

    if mapped == 0 or not ids:
        raise PhonemeError(
            "No usable phoneme symbols",
            reason=f"none of {len(phonemes)} characters are in the phoneme map",
        )

    return ids
